"""Main entry point for the mesh_brute package."""
from mesh_brute.cli import cli


def main():
    """Main entry point function."""
    cli(auto_envvar_prefix="MESH_BRUTE")


if __name__ == "__main__":
    main()
