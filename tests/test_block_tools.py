import base64
import os

import pytest
from Cryptodome.Cipher import AES

import block_tools
import util

KEY = b"YELLOW SUBMARINE"
IV = bytes(range(16))

PLAINTEXTS = [
    b"",
    b"a",
    b"YELLOW SUBMARINE",
    b"taco bell is #1 taco bell is #2 oh no",
    bytes(range(256)),
]


class XorBlockCipher:
    """Toy 4-byte block cipher that XORs each block with the key."""

    block_size = 4

    def __init__(self, key):
        self.key = key

    def encrypt_block(self, block):
        assert len(block) == self.block_size
        return util.xor_bytes(block, self.key)

    decrypt_block = encrypt_block


def test_pad_to_block_size_20():
    assert block_tools.pad(b"YELLOW SUBMARINE", 20) == b"YELLOW SUBMARINE\x04\x04\x04\x04"


def test_pad_adds_whole_block_when_aligned():
    assert block_tools.pad(b"YELLOW SUBMARINE") == b"YELLOW SUBMARINE" + b"\x04" * 16
    assert block_tools.pad(b"") == b"\x04" * 16


@pytest.mark.parametrize("block_size", [1, 3, 8, 16, 20])
@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_pad_length(plaintext, block_size):
    padded = block_tools.pad(plaintext, block_size)
    assert len(padded) % block_size == 0
    assert len(plaintext) < len(padded) <= len(plaintext) + block_size
    assert padded.startswith(plaintext)


def test_pad_rejects_bad_block_size():
    with pytest.raises(ValueError):
        block_tools.pad(b"abc", 0)


def test_strip_padding():
    assert block_tools.strip_padding(block_tools.pad(b"ICE ICE BABY")) == b"ICE ICE BABY"
    assert block_tools.strip_padding(b"no padding") == b"no padding"


def test_aes_block_cipher_single_block():
    cipher = block_tools.AESBlockCipher(KEY)
    block = b"sixteen byte blk"
    encrypted = cipher.encrypt_block(block)
    assert encrypted == AES.new(KEY, AES.MODE_ECB).encrypt(block)
    assert cipher.decrypt_block(encrypted) == block


@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_ecb_matches_library(plaintext):
    ciphertext = block_tools.ecb_encrypt(plaintext, KEY)
    assert ciphertext == AES.new(KEY, AES.MODE_ECB).encrypt(block_tools.pad(plaintext))
    assert block_tools.ecb_decrypt(ciphertext, KEY) == block_tools.pad(plaintext)


@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_cbc_matches_library(plaintext):
    ciphertext = block_tools.cbc_encrypt(plaintext, KEY, IV)
    assert ciphertext == AES.new(KEY, AES.MODE_CBC, IV).encrypt(block_tools.pad(plaintext))
    assert block_tools.cbc_decrypt(ciphertext, KEY, IV) == block_tools.pad(plaintext)


def test_cbc_round_trip_random_key():
    key = block_tools.random_aes_key()
    iv = os.urandom(16)
    plaintext = os.urandom(100)
    ciphertext = block_tools.cbc_encrypt(plaintext, key, iv)
    assert block_tools.cbc_decrypt(ciphertext, key, iv) == block_tools.pad(plaintext)


def test_cbc_decrypt_chains_on_ciphertext():
    # Flipping a bit in one ciphertext block garbles that block and flips
    # the same bit in the next plaintext block, and nothing after it.
    plaintext = b"A" * 48
    ciphertext = bytearray(block_tools.cbc_encrypt(plaintext, KEY, IV))
    ciphertext[0] ^= 1
    decrypted = block_tools.cbc_decrypt(bytes(ciphertext), KEY, IV)
    assert decrypted[16:32] == b"\x40" + b"A" * 15
    assert decrypted[32:] == b"A" * 16 + b"\x04" * 16


def test_injected_block_cipher():
    key = b"\x01\x02\x03\x04"
    iv = b"\x10\x20\x30\x40"
    ciphertext = block_tools.cbc_encrypt(b"abcdef", key, iv, cipher_factory=XorBlockCipher)
    first = util.xor_bytes(b"abcd", iv, key)
    second = util.xor_bytes(b"ef\x04\x04", first, key)
    assert ciphertext == first + second
    assert block_tools.cbc_decrypt(ciphertext, key, iv, cipher_factory=XorBlockCipher) == \
        b"abcdef\x04\x04"
    assert block_tools.ecb_encrypt(b"abcd", key, cipher_factory=XorBlockCipher) == \
        util.xor_bytes(b"abcd", key) + util.xor_bytes(b"\x04" * 4, key)


@pytest.mark.parametrize("decrypt, args", [
    (block_tools.ecb_decrypt, ()),
    (block_tools.cbc_decrypt, (IV,)),
])
def test_decrypt_rejects_unaligned_input(decrypt, args):
    with pytest.raises(ValueError):
        decrypt(b"x" * 17, KEY, *args)


def test_cbc_rejects_bad_iv():
    with pytest.raises(ValueError):
        block_tools.cbc_encrypt(b"abc", KEY, b"short")
    with pytest.raises(ValueError):
        block_tools.cbc_decrypt(b"x" * 16, KEY, b"short")


def test_ecb_leaks_repeated_blocks():
    ciphertext = block_tools.ecb_encrypt(b"YELLOW SUBMARINE" * 2, KEY)
    blocks = util.chunks(ciphertext)
    assert blocks[0] == blocks[1]
    assert block_tools.detect_mode(ciphertext) == "ECB"


def test_cbc_hides_repeated_blocks():
    ciphertext = block_tools.cbc_encrypt(b"YELLOW SUBMARINE" * 2, KEY, os.urandom(16))
    blocks = util.chunks(ciphertext)
    assert blocks[0] != blocks[1]
    assert block_tools.detect_mode(ciphertext) == "CBC"


def test_detect_mode_edge_cases():
    assert block_tools.detect_mode(b"") == "CBC"
    assert block_tools.detect_mode(b"abcd" * 2, block_size=4) == "ECB"
    assert not block_tools.looks_like_ecb(bytes(range(64)))


def test_encrypt_with_random_mode():
    plain_bytes = b"\x00" * 64
    seen_modes = set()
    for _ in range(200):
        ciphertext, mode = block_tools.encrypt_with_random_mode(plain_bytes)
        # 64 bytes plus 10 to 20 bytes of random prefix and suffix, padded.
        assert len(ciphertext) in (80, 96)
        assert block_tools.detect_mode(ciphertext) == mode
        seen_modes.add(mode)
    assert seen_modes == {"ECB", "CBC"}


def test_challenge_7_file(text_file):
    ciphertext = base64.b64decode(text_file("7.txt"))
    assert b"white boy" in block_tools.ecb_decrypt(ciphertext, KEY)


def test_challenge_10_file(text_file):
    ciphertext = base64.b64decode(text_file("10.txt"))
    plain_bytes = block_tools.cbc_decrypt(ciphertext, KEY, b"\x00" * 16)
    assert b"white boy" in plain_bytes
    assert block_tools.cbc_encrypt(plain_bytes, KEY, b"\x00" * 16)[:len(ciphertext)] == ciphertext
