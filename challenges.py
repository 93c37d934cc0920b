#!/usr/bin/env python3

# standard library modules
import base64
import cProfile
import inspect
import logging
import os
import pprint as pprint_module
import re
import sys
import traceback
import warnings

from argparse import ArgumentParser
from contextlib import redirect_stdout


# third-party modules
from Cryptodome.Cipher import AES


# modules in this project
import block_tools
import english
import util

warnings.simplefilter("default", BytesWarning)
warnings.simplefilter("default", ResourceWarning)
warnings.simplefilter("default", DeprecationWarning)

DEFAULT_TEXT_DIR = "text_files"

EXAMPLE_PLAIN_BYTES = (b"Give a man a beer, he'll waste an hour. "
                       b"Teach a man to brew, he'll waste a lifetime.")


def pprint(*args, width=120, **kwargs):
    pprint_module.pprint(*args, width=width, **kwargs)


def read_base64_file(text_dir, name):
    with open(os.path.join(text_dir, name)) as f:
        return base64.b64decode(f.read())


def read_hex_lines(text_dir, name):
    with open(os.path.join(text_dir, name)) as f:
        return [bytes.fromhex(line.strip()) for line in f if line.strip()]


def challenge1():
    """Convert hex to base64"""
    encoded_text = ("49276d206b696c6c696e6720796f757220627261696e206c696b65206120706f6973"
                    "6f6e6f7573206d757368726f6f6d")
    message = bytes.fromhex(encoded_text)
    print(message.decode())
    result = base64.b64encode(message)

    assert result == b"SSdtIGtpbGxpbmcgeW91ciBicmFpbiBsaWtlIGEgcG9pc29ub3VzIG11c2hyb29t"


def challenge2():
    """Fixed XOR"""
    output = util.xor_bytes(
        bytes.fromhex("1c0111001f010100061a024b53535009181c"),
        bytes.fromhex("686974207468652062756c6c277320657965"))
    assert output == b"the kid don't play"
    print(output.decode())
    print(output.hex())


def challenge3():
    """Single-byte XOR cipher"""
    cipher_hex = "1b37373331363f78151b7f2b783431333d78397828372d363c78373e783a393b3736"
    key, score, message = english.crack_single_byte_xor(bytes.fromhex(cipher_hex))
    print("key: {!r} score: {}".format(chr(key), score))
    print(message.decode())
    assert message == b"Cooking MC's like a pound of bacon"


def challenge4(text_dir=DEFAULT_TEXT_DIR):
    """Detect single-character XOR"""
    ciphertexts = read_hex_lines(text_dir, "4.txt")
    index, key, score, message = english.detect_single_byte_xor(ciphertexts)
    print("line: {} key: {!r} score: {}".format(index + 1, chr(key), score))
    print(message.decode(errors="replace"))
    assert message.startswith(b"Now that the party is jumping")


def challenge5():
    """Implement repeating-key XOR"""
    stanza = ("Burning 'em, if you ain't quick and nimble\n"
              "I go crazy when I hear a cymbal")
    result = util.apply_repeating_xor_key(stanza.encode(), b"ICE").hex()
    assert result == ("0b3637272a2b2e63622c2e69692a23693a2a3c6324202d623d63343c2a26226324"
                      "272765272a282b2f20430a652e2c652a3124333a653e2b2027630c692b20283165"
                      "286326302e27282f")
    print(result)


def challenge6(text_dir=DEFAULT_TEXT_DIR):
    """Break repeating-key XOR"""
    assert util.bit_hamming_distance(b"this is a test", b"wokka wokka!!!") == 37

    ciphertext = read_base64_file(text_dir, "6.txt")
    key_size, distance = english.guess_key_size(ciphertext)
    print("key size: {} distance: {:.4f}".format(key_size, distance))
    assert key_size == 29

    key, plain_bytes = english.crack_repeating_xor_key(ciphertext, key_size)
    print("key: {}".format(key.decode()))
    print()
    print(plain_bytes.decode())
    assert key == b"Terminator X: Bring the noise"


def challenge7(text_dir=DEFAULT_TEXT_DIR):
    """AES in ECB mode"""
    ciphertext = read_base64_file(text_dir, "7.txt")
    message = block_tools.ecb_decrypt(ciphertext, b"YELLOW SUBMARINE")
    print(message.decode(errors="replace"))
    assert b"white boy" in message


def challenge8(text_dir=DEFAULT_TEXT_DIR):
    """Detect AES in ECB mode"""
    ciphertexts = read_hex_lines(text_dir, "8.txt")
    ecb_texts = []
    for i, ciphertext in enumerate(ciphertexts, start=1):
        if block_tools.detect_mode(ciphertext) == "ECB":
            ecb_texts.append(ciphertext)
            print("ECB-like ciphertext found on line {}".format(i))
            pprint([util.pretty_hex_bytes(x) for x in util.chunks(ciphertext)])
    assert len(ecb_texts) == 1


def challenge9():
    """Implement PKCS#7 padding"""
    # The padding byte is always \x04 here, not the padding length.
    assert (block_tools.pad(b"YELLOW SUBMARINE", 20) ==
            b"YELLOW SUBMARINE\x04\x04\x04\x04")


def challenge10(text_dir=DEFAULT_TEXT_DIR):
    """Implement CBC mode"""
    ciphertext = read_base64_file(text_dir, "10.txt")
    key = b"YELLOW SUBMARINE"
    iv = b"\x00" * 16

    plain_bytes = block_tools.cbc_decrypt(ciphertext, key, iv)
    print(plain_bytes.decode(errors="replace"))
    assert b"white boy" in plain_bytes
    assert plain_bytes == AES.new(key, AES.MODE_CBC, iv).decrypt(ciphertext)

    # The plaintext is already block-aligned, so encrypting it again adds a
    # whole block of padding after the original ciphertext.
    new_ciphertext = block_tools.cbc_encrypt(plain_bytes, key, iv)
    assert new_ciphertext[:len(ciphertext)] == ciphertext
    assert len(new_ciphertext) == len(ciphertext) + block_tools.BLOCK_SIZE


def challenge11():
    """An ECB/CBC detection oracle"""
    # With 5 to 10 bytes of random prefix, 43 identical bytes are enough to
    # fill two whole blocks, which always collide under ECB.
    plain_bytes = b"\x00" * 64
    for _ in range(1000):
        ciphertext, mode = block_tools.encrypt_with_random_mode(plain_bytes)
        assert block_tools.detect_mode(ciphertext) == mode


class ChallengeNotFoundError(ValueError):
    pass


def get_challenges(challenge_nums):
    result = []
    for num in challenge_nums:
        fn = globals().get("challenge" + str(num))
        if not callable(fn):
            raise ChallengeNotFoundError("challenge {} not found".format(num))
        result.append(fn)
    return result


def get_all_challenges():
    challenges = {}
    for name, var in globals().items():
        try:
            num = int(re.findall(r"^challenge(\d+)$", name)[0])
        except IndexError:
            pass
        else:
            if callable(var):
                challenges[num] = var
    return [challenges[num] for num in sorted(challenges)]


def main():
    parser = ArgumentParser(
        description="Break XOR ciphers and build block cipher modes by hand.")
    parser.add_argument(
        "challenges", nargs="*",
        help="Challenge(s) to run. If not specified, all challenges will be run.")
    parser.add_argument(
        "-p", "--profile", help="Profile challenges.", action="store_true")
    parser.add_argument(
        "-q", "--quiet", help="Don't show challenge output.", action="store_true")
    parser.add_argument(
        "-v", "--verbose", help="Show debug logging from the library modules.",
        action="store_true")
    parser.add_argument(
        "-t", "--text-dir", default=DEFAULT_TEXT_DIR,
        help="Directory containing the challenge data files (default: %(default)s).")
    args = parser.parse_args()
    try:
        challenges = get_challenges(args.challenges) or get_all_challenges()
    except ChallengeNotFoundError as e:
        parser.error(e)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s")

    profile = cProfile.Profile() if args.profile else None
    failures = 0
    try:
        with open(os.devnull, "w") as null_stream:
            output_stream = null_stream if args.quiet else sys.stdout
            for challenge in challenges:
                num = re.findall(r"^challenge(.+)$", challenge.__name__)[0]
                print("Running challenge {}: {}".format(num, challenge.__doc__))
                try:
                    challenge_args = {name: value for name, value in vars(args).items()
                                      if name in inspect.signature(challenge).parameters}
                    with redirect_stdout(output_stream):
                        if profile:
                            profile.runcall(challenge, **challenge_args)
                        else:
                            challenge(**challenge_args)
                except Exception:
                    failures += 1
                    traceback.print_exc()
                else:
                    print("Challenge {} passed.".format(num))
    finally:
        if profile:
            print()
            profile.print_stats(sort="cumulative")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
