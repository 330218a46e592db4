"""AES-128-CTR adapter over the `cryptography` primitive.

The counter block is 8 bytes of fixed nonce prefix followed by a 64-bit
counter field. `cryptography` increments the whole 128-bit block, which only
differs from a 64-bit counter when the low 8 bytes wrap. The counter block
built for a packet starts its last word at 1, so that never happens for any
ciphertext a radio packet can carry.
"""
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_SIZE = 16
COUNTER_BLOCK_SIZE = 16


def _cipher(key: bytes, counter_block: bytes) -> Cipher:
    if len(key) != KEY_SIZE:
        raise ValueError(f"AES-128 key must be {KEY_SIZE} bytes, got {len(key)}")
    if len(counter_block) != COUNTER_BLOCK_SIZE:
        raise ValueError(f"counter block must be {COUNTER_BLOCK_SIZE} bytes, got {len(counter_block)}")
    return Cipher(algorithms.AES(key), modes.CTR(counter_block))


def decrypt(ciphertext: bytes, key: bytes, counter_block: bytes) -> bytes:
    """ Decrypt with AES-CTR. A wrong key never fails, it yields garbage of the same length. """
    decryptor = _cipher(key, counter_block).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()


def encrypt(plaintext: bytes, key: bytes, counter_block: bytes) -> bytes:
    encryptor = _cipher(key, counter_block).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()
