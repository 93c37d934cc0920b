import logging
import math

from collections import defaultdict

from util import apply_repeating_xor_key, bit_hamming_distance, chunks, sliding_pairs

logger = logging.getLogger(__name__)

# Every possible single-byte key, in the order they are tried.
ALL_KEY_BYTES = bytes(range(256))

KEY_SIZE_RANGE = range(2, 41)

# Weights for the most common characters in English text, most common
# first. Text should be converted to lowercase before one attempts to
# analyze it using this dictionary. Any byte not listed here, including
# control characters and non-ASCII bytes, is worth nothing.
english_byte_weights = defaultdict(
    int,
    {ord(char): weight for weight, char in enumerate(reversed("etaoin shrdlu"), start=1)})


def english_like_score(text_bytes):
    # bytes.lower() only touches ASCII letters, so bytes above 0x7f keep
    # their value and score 0.
    return sum(english_byte_weights[byte] for byte in text_bytes.lower())


def xor_score_data(ciphertext, key):
    message = apply_repeating_xor_key(ciphertext, key)
    return {"key": key, "message": message, "score": english_like_score(message)}


def crack_single_byte_xor(ciphertext):
    """Find the single-byte XOR key that makes ciphertext look most like English.

    Returns a (key, score, plaintext) tuple. All 256 keys are always tried
    and a later key with the same score as the best so far replaces it, so
    an input where every key ties (such as an empty one) yields key 255.
    """
    best_key, best_score, best_message = 0, 0, b""
    for key in ALL_KEY_BYTES:
        data = xor_score_data(ciphertext, bytes([key]))
        if data["score"] >= best_score:
            best_key, best_score, best_message = key, data["score"], data["message"]
    return (best_key, best_score, best_message)


def detect_single_byte_xor(ciphertexts):
    """Find which of several ciphertexts was encrypted with single-byte XOR.

    Returns (index, key, score, plaintext) for the ciphertext whose best
    decryption scores highest. Ties go to the later ciphertext.
    """
    best = None
    for i, ciphertext in enumerate(ciphertexts):
        key, score, message = crack_single_byte_xor(ciphertext)
        if best is None or score >= best[2]:
            best = (i, key, score, message)
    if best is None:
        raise ValueError("no ciphertexts given")
    return best


def group_by_key_index(ciphertext, key_size):
    groups = [bytearray() for _ in range(key_size)]
    for i, byte in enumerate(ciphertext):
        groups[i % key_size].append(byte)
    return [bytes(group) for group in groups]


def normalized_chunk_distance(ciphertext, key_size):
    """Return the mean Hamming distance per byte between adjacent chunks.

    Only full chunks of key_size bytes are compared. Returns None if there
    are fewer than two of them.
    """
    full_chunks = chunks(ciphertext[: len(ciphertext) - len(ciphertext) % key_size], key_size)
    if len(full_chunks) < 2:
        return None
    total = sum(bit_hamming_distance(a, b) / key_size for a, b in sliding_pairs(full_chunks))
    return total / (len(full_chunks) - 1)


def guess_key_size(ciphertext, min_size=KEY_SIZE_RANGE.start, max_size=KEY_SIZE_RANGE.stop - 1):
    best_key_size, smallest_distance = 0, math.inf
    for key_size in range(min_size, max_size + 1):
        distance = normalized_chunk_distance(ciphertext, key_size)
        if distance is None:
            continue
        # Only a strictly smaller distance counts, so the smallest key size
        # wins a tie.
        if distance < smallest_distance:
            best_key_size, smallest_distance = key_size, distance
    logger.debug("guessed key size %d (distance %.4f)", best_key_size, smallest_distance)
    return (best_key_size, smallest_distance)


def crack_repeating_xor_key(ciphertext, key_size=None):
    if key_size is None:
        key_size = guess_key_size(ciphertext)[0]
        if not key_size:
            raise ValueError("ciphertext is too short to guess the key size")
    key = bytearray()
    for i, group in enumerate(group_by_key_index(ciphertext, key_size)):
        key_byte, score, _ = crack_single_byte_xor(group)
        logger.debug("key byte %d: %#04x (score %d)", i, key_byte, score)
        key.append(key_byte)
    key = bytes(key)
    return (key, apply_repeating_xor_key(ciphertext, key))
