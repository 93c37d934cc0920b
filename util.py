from itertools import cycle, tee
from random import SystemRandom

random = SystemRandom()


def xor_bytes(*bytes_objects):
    lengths = [len(b) for b in bytes_objects]
    if len(set(lengths)) > 1:
        raise ValueError("inputs must be of equal length")
    result = bytearray([0]) * lengths[0]
    for b in bytes_objects:
        for i, byte in enumerate(b):
            result[i] ^= byte
    return bytes(result)


def apply_repeating_xor_key(input_bytes, key):
    if not key:
        raise ValueError("key must not be empty")
    return bytes(a ^ b for a, b in zip(input_bytes, cycle(key)))


def chunks(x, chunk_size=16):
    return [x[i : i + chunk_size] for i in range(0, len(x), chunk_size)]


def sliding_pairs(iterable):
    # pairwise recipe from https://docs.python.org/3/library/itertools.html
    """s -> (s[0], s[1]), (s[1], s[2]), (s[2], s[3]), ..."""
    a, b = tee(iterable)
    next(b, None)
    return zip(a, b)


def bit_hamming_distance(bytes1, bytes2):
    """Return the number of bits that differ between two equal-length inputs."""
    if len(bytes1) != len(bytes2):
        raise ValueError("inputs must be of equal length")
    return sum(bin(b1 ^ b2).count("1") for b1, b2 in zip(bytes1, bytes2))


def pretty_hex_bytes(input_bytes):
    return " ".join("{:02x}".format(b) for b in input_bytes)
