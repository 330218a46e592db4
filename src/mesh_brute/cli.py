from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
import functools
import sys
import threading
from typing import Optional

import click
from rich.console import Console

from mesh_brute.algorithm.cipher import decrypt as aes_ctr_decrypt, encrypt as aes_ctr_encrypt
from mesh_brute.algorithm.counter_block import build_counter_block
from mesh_brute.algorithm.extractor import decode_payload, extract
from mesh_brute.algorithm.key_space import expand_key
from mesh_brute.algorithm.validator import validate
from mesh_brute.algorithm.wire import build_data_message
from mesh_brute.log_config import configure_logging
from mesh_brute.models.search import (
    DEFAULT_CHUNK_SIZE,
    MAX_DEPTH,
    InvalidSearchConfig,
    SearchConfig,
    SearchProgress,
    SearchResult,
)
from mesh_brute.portnums import portnum_label
from mesh_brute.solver import search_sharded
from mesh_brute.state_queue import SingleSlotQueue
from mesh_brute.ui import render_result, ui_loop
from mesh_brute.utils import (
    CIPHERTEXT_FORMATS,
    decode_ciphertext,
    encode_ciphertext,
    format_hex_dump,
    format_node_id,
    load_ciphertext,
    parse_u32,
    CiphertextFormat,
)


class U32ParamType(click.ParamType):
    """Packet ids and node numbers: decimal, 0x-hex or !xxxxxxxx."""

    name = "u32"

    def convert(self, value, param, ctx):
        if isinstance(value, int):
            return value
        try:
            return parse_u32(value)
        except ValueError:
            self.fail(f"{value!r} is not a 32-bit number or !node id", param, ctx)


U32 = U32ParamType()


def packet_options(fn):
    """Ciphertext input plus the packet metadata that seeds the counter block."""
    @click.option("--ciphertext-path", "-c", type=click.Path(exists=True, dir_okay=False),
                  help="File holding the encrypted payload.")
    @click.option("--ciphertext", "-x", "ciphertext_text", help="Encrypted payload given inline.")
    @click.option("--ciphertext-format", "-f", type=click.Choice(CIPHERTEXT_FORMATS), default="hex",
                  show_default=True)
    @click.option("--packet-id", "-p", type=U32, required=True, help="Packet id from the packet header.")
    @click.option("--from-node", "-n", type=U32, required=True, help="Sending node number.")
    @functools.wraps(fn)
    def wrapper(ciphertext_path, ciphertext_text, ciphertext_format, **kwargs):
        kwargs["ciphertext"] = read_ciphertext(ciphertext_path, ciphertext_text, ciphertext_format)
        return fn(**kwargs)
    return wrapper


def read_ciphertext(path: Optional[str], text: Optional[str], format: CiphertextFormat) -> bytes:
    if (path is None) == (text is None):
        raise click.UsageError("Give exactly one of --ciphertext-path or --ciphertext.")
    try:
        if path is not None:
            return load_ciphertext(path, format)
        return decode_ciphertext(text, format)
    except ValueError as e:
        raise click.BadParameter(f"Could not decode ciphertext as {format}: {e}")


def parse_short_key(key_hex: str) -> bytes:
    try:
        key = bytes.fromhex(key_hex.removeprefix("0x"))
    except ValueError:
        raise click.BadParameter(f"{key_hex!r} is not hex", param_hint="--key")
    if not 1 <= len(key) <= 16:
        raise click.BadParameter("key must be 1 to 16 bytes", param_hint="--key")
    return key


def _search_worker(config: SearchConfig, workers: int, progress_queue: SingleSlotQueue[SearchProgress]):
    try:
        return search_sharded(config, workers)
    finally:
        # Always close the queue so the UI can exit
        progress_queue.close()


def solver(config: SearchConfig, workers: int = 1, show_ui: bool = True) -> Optional[SearchResult]:
    """Run the key search on a worker thread while the main thread draws progress."""
    progress_queue: SingleSlotQueue[SearchProgress] = SingleSlotQueue()
    cancel = config.cancel or threading.Event()
    config = replace(config, progress_callback=progress_queue.publish, cancel=cancel)

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(_search_worker, config, workers, progress_queue)
        try:
            if show_ui:
                ui_loop(progress_queue, title=f"Depth {config.depth} key search")
            return future.result()
        except KeyboardInterrupt:
            cancel.set()
            progress_queue.close()
            return future.result()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def cli(verbose: bool):
    """Recover short AES-CTR channel keys from captured mesh packets."""
    configure_logging(verbose)


@cli.command()
@packet_options
@click.option("--depth", "-d", type=click.IntRange(1, MAX_DEPTH), default=2, show_default=True,
              help="Key length in bytes to search (256^depth keys).")
@click.option("--chunk-size", type=click.IntRange(min=1), default=DEFAULT_CHUNK_SIZE, show_default=True)
@click.option("--workers", "-w", type=click.IntRange(min=1), default=1, show_default=True)
@click.option("--simple-psk", is_flag=True, help="Expand 1-byte keys 1-10 with the default channel key.")
@click.option("--no-ui", is_flag=True, help="Don't draw the live progress panel.")
def search(ciphertext: bytes, packet_id: int, from_node: int, depth: int, chunk_size: int,
           workers: int, simple_psk: bool, no_ui: bool):
    """Brute force the channel key of an encrypted packet."""
    try:
        config = SearchConfig(
            ciphertext=ciphertext,
            packet_id=packet_id,
            from_node=from_node,
            depth=depth,
            chunk_size=chunk_size,
            simple_psk=simple_psk,
        )
    except InvalidSearchConfig as e:
        raise click.UsageError(str(e))

    result = solver(config, workers=workers, show_ui=not no_ui)
    if result is None:
        click.echo(f"No key found for packet {packet_id:#010x} from {format_node_id(from_node)}.")
        sys.exit(1)

    Console().print(render_result(result))


@cli.command()
@click.option("--text", "-t", help="Text message to encrypt.")
@click.option("--payload-hex", help="Raw payload bytes, hex.")
@click.option("--portnum", type=click.IntRange(1, 127), default=1, show_default=True)
@click.option("--key", "-k", "key_hex", required=True, help="Short channel key, hex.")
@click.option("--packet-id", "-p", type=U32, required=True)
@click.option("--from-node", "-n", type=U32, required=True)
@click.option("--simple-psk", is_flag=True)
@click.option("--ciphertext-format", "-f", type=click.Choice(CIPHERTEXT_FORMATS), default="hex",
              show_default=True)
def encrypt(text: Optional[str], payload_hex: Optional[str], portnum: int, key_hex: str, packet_id: int,
            from_node: int, simple_psk: bool, ciphertext_format: CiphertextFormat):
    """Build and encrypt a sample Data message."""
    if (text is None) == (payload_hex is None):
        raise click.UsageError("Give exactly one of --text or --payload-hex.")
    try:
        payload = text.encode("utf-8") if text is not None else bytes.fromhex(payload_hex)
        plaintext = build_data_message(portnum, payload)
    except ValueError as e:
        raise click.BadParameter(str(e))

    key = expand_key(parse_short_key(key_hex), simple_psk)
    ciphertext = aes_ctr_encrypt(plaintext, key, build_counter_block(packet_id, from_node))

    encoded = encode_ciphertext(ciphertext, ciphertext_format)
    if isinstance(encoded, bytes):
        click.get_binary_stream("stdout").write(encoded)
    else:
        click.echo(encoded)


@cli.command()
@packet_options
@click.option("--key", "-k", "key_hex", required=True, help="Short channel key, hex.")
@click.option("--simple-psk", is_flag=True)
def decrypt(ciphertext: bytes, packet_id: int, from_node: int, key_hex: str, simple_psk: bool):
    """Decrypt a packet with a known key and show what the validator makes of it."""
    key = expand_key(parse_short_key(key_hex), simple_psk)
    plaintext = aes_ctr_decrypt(ciphertext, key, build_counter_block(packet_id, from_node))

    validation = validate(plaintext)
    extraction = extract(plaintext)
    payload = decode_payload(extraction.portnum, extraction.payload)

    click.echo(f"valid:      {validation.valid}")
    click.echo(f"confidence: {validation.confidence}")
    if extraction.portnum is not None:
        click.echo(f"port:       {portnum_label(extraction.portnum)} ({extraction.portnum})")
    if isinstance(payload, str):
        click.echo(f"text:       {payload}")
    elif payload is not None:
        click.echo(f"payload:    {payload.hex(' ')}")
    for line in format_hex_dump(plaintext):
        click.echo(line)
