import logging
import os

from collections import Counter

from Cryptodome.Cipher import AES

from util import chunks, random, xor_bytes

logger = logging.getLogger(__name__)

BLOCK_SIZE = 16

# Padding is filled with this byte no matter how long it is. Unlike PKCS#7,
# the padding length is not encoded, so it can't be validated on removal.
PADDING_BYTE = b"\x04"


class AESBlockCipher:
    """Encrypt or decrypt exactly one AES block at a time."""

    block_size = AES.block_size

    def __init__(self, key):
        self._cipher = AES.new(key, AES.MODE_ECB)

    def encrypt_block(self, block):
        return self._cipher.encrypt(block)

    def decrypt_block(self, block):
        return self._cipher.decrypt(block)


def pad(input_bytes, block_size=BLOCK_SIZE):
    if block_size <= 0:
        raise ValueError("block size must be positive")
    padding_length = block_size - len(input_bytes) % block_size
    return input_bytes + PADDING_BYTE * padding_length


def strip_padding(input_bytes):
    # Only safe when the plaintext itself can't end with PADDING_BYTE.
    return input_bytes.rstrip(PADDING_BYTE)


def _check_block_aligned(input_bytes, block_size):
    if len(input_bytes) % block_size:
        raise ValueError("input length must be a multiple of the block size")


def _check_iv(iv, block_size):
    if len(iv) != block_size:
        raise ValueError("IV must be {} bytes long".format(block_size))


def ecb_encrypt(plaintext, key, cipher_factory=AESBlockCipher):
    cipher = cipher_factory(key)
    result = bytearray()
    for plain_block in chunks(pad(plaintext, cipher.block_size), cipher.block_size):
        result.extend(cipher.encrypt_block(plain_block))
    return bytes(result)


def ecb_decrypt(ciphertext, key, cipher_factory=AESBlockCipher):
    cipher = cipher_factory(key)
    _check_block_aligned(ciphertext, cipher.block_size)
    result = bytearray()
    for cipher_block in chunks(ciphertext, cipher.block_size):
        result.extend(cipher.decrypt_block(cipher_block))
    return bytes(result)


def cbc_encrypt(plaintext, key, iv, cipher_factory=AESBlockCipher):
    cipher = cipher_factory(key)
    _check_iv(iv, cipher.block_size)
    result = bytearray()
    prev_cipher_block = iv
    for plain_block in chunks(pad(plaintext, cipher.block_size), cipher.block_size):
        cipher_block = cipher.encrypt_block(xor_bytes(prev_cipher_block, plain_block))
        result.extend(cipher_block)
        prev_cipher_block = cipher_block
    return bytes(result)


def cbc_decrypt(ciphertext, key, iv, cipher_factory=AESBlockCipher):
    cipher = cipher_factory(key)
    _check_block_aligned(ciphertext, cipher.block_size)
    _check_iv(iv, cipher.block_size)
    result = bytearray()
    prev_cipher_block = iv
    for cipher_block in chunks(ciphertext, cipher.block_size):
        decrypted_block = cipher.decrypt_block(cipher_block)
        result.extend(xor_bytes(prev_cipher_block, decrypted_block))
        prev_cipher_block = cipher_block
    return bytes(result)


def looks_like_ecb(ciphertext, block_size=BLOCK_SIZE):
    # TODO: use birthday paradox to calculate an estimate for the expected
    # number of duplicate blocks so this function works on big ciphertexts.
    block_counter = Counter(chunks(ciphertext, block_size))
    return bool(block_counter) and block_counter.most_common(1)[0][1] > 1


def detect_mode(ciphertext, block_size=BLOCK_SIZE):
    return "ECB" if looks_like_ecb(ciphertext, block_size) else "CBC"


def random_aes_key():
    return os.urandom(16)


def encrypt_with_random_mode(plain_bytes):
    """Encrypt under a random key with either ECB or CBC, picked at random.

    Between 5 and 10 random bytes are added before and after the input.
    Returns (ciphertext, mode) so callers can check a guess at the mode.
    """
    key = random_aes_key()
    mode = random.choice(["ECB", "CBC"])
    prefix = os.urandom(random.randint(5, 10))
    suffix = os.urandom(random.randint(5, 10))
    cipher_input = prefix + plain_bytes + suffix
    logger.debug("encrypting %d bytes in %s mode", len(cipher_input), mode)
    if mode == "CBC":
        ciphertext = cbc_encrypt(cipher_input, key, os.urandom(BLOCK_SIZE))
    else:
        ciphertext = ecb_encrypt(cipher_input, key)
    return (ciphertext, mode)
