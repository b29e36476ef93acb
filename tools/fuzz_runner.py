#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing for the bsondec decoder.
#
# Generates random VALID documents covering every element kind, then:
#   A) parses them as-is: must succeed, declared_size == len(input)
#   B) flips, truncates, inserts or overwrites bytes: must either parse or
#      raise BsonError, never any other exception
#   C) parses every input twice: both results must render identically
#
# Any violation prints a minimal repro payload and exits non-zero.

import os, sys, json, random, struct
from typing import List

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from bsondec import BsonError, parse, to_json_value

SEED = int(os.environ.get("BSONDEC_SEED", "4242"))
ROUNDS = int(os.environ.get("BSONDEC_FUZZ_ROUNDS", "5000"))
MAX_GEN_DEPTH = int(os.environ.get("BSONDEC_GEN_MAX_DEPTH", "5"))

random.seed(SEED)

# --- generators ---

def rand_name(nmax: int = 8) -> bytes:
    return bytes(random.randint(0x21, 0x7E) for _ in range(random.randint(0, nmax)))

def rand_bytes(nmax: int = 24) -> bytes:
    return bytes(random.getrandbits(8) for _ in range(random.randint(0, nmax)))

def i32(n: int) -> bytes:
    return struct.pack("<i", n)

def string(raw: bytes) -> bytes:
    return i32(len(raw) + 1) + raw + b"\x00"

def document(elements: List[bytes]) -> bytes:
    body = b"".join(elements)
    return i32(len(body) + 5) + body + b"\x00"

def gen_document(depth: int, array: bool = False) -> bytes:
    n = random.randint(0, 5)
    elements = []
    for i in range(n):
        name = str(i).encode() if array else rand_name()
        tag, payload = gen_payload(depth)
        elements.append(struct.pack("<b", tag) + name + b"\x00" + payload)
    return document(elements)

def gen_payload(depth: int):
    nested_ok = depth < MAX_GEN_DEPTH
    choices = [1, 2, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 16, 17, 18, 19, -1, 127]
    if nested_ok:
        choices += [3, 4, 15]
    tag = random.choice(choices)
    if tag == 1:
        return tag, struct.pack("<d", random.uniform(-1e6, 1e6))
    if tag in (2, 13, 14):
        return tag, string(rand_name(16))
    if tag == 3:
        return tag, gen_document(depth + 1)
    if tag == 4:
        return tag, gen_document(depth + 1, array=True)
    if tag == 5:
        data = rand_bytes()
        sub = random.choice([0, 1, 2, 3, 4, 5, 6, 7, 8, 0x80, 0xFF])
        return tag, i32(len(data)) + bytes([sub]) + data
    if tag in (6, 10, -1, 127):
        return tag, b""
    if tag == 7:
        return tag, bytes(random.getrandbits(8) for _ in range(12))
    if tag == 8:
        return tag, bytes([random.randint(0, 1)])
    if tag in (9, 17, 18):
        return tag, struct.pack("<q", random.randint(-2**63, 2**63 - 1))
    if tag == 11:
        return tag, rand_name() + b"\x00" + rand_name(3) + b"\x00"
    if tag == 12:
        return tag, string(rand_name()) + bytes(12)
    if tag == 15:
        body = string(rand_name(16)) + gen_document(depth + 1)
        return tag, i32(len(body) + 4) + body
    if tag == 16:
        return tag, i32(random.randint(-2**31, 2**31 - 1))
    return tag, bytes(random.getrandbits(8) for _ in range(16))

def mutate(raw: bytes) -> bytes:
    buf = bytearray(raw)
    for _ in range(random.randint(1, 3)):
        op = random.random()
        if op < 0.4 and buf:
            buf[random.randrange(len(buf))] = random.getrandbits(8)
        elif op < 0.6 and buf:
            del buf[random.randrange(len(buf)):]
        elif op < 0.8:
            pos = random.randint(0, len(buf))
            buf[pos:pos] = rand_bytes(4)
        elif len(buf) >= 4:
            # Overwrite a length-looking field with a hostile value.
            pos = random.randrange(len(buf) - 3)
            buf[pos:pos + 4] = i32(random.choice([-1, 0, 1, 5, 2**31 - 1, len(buf)]))
    return bytes(buf)

# --- checks ---

def fail(label: str, raw: bytes, detail: str) -> None:
    print("FAILURE:", label)
    print("DETAIL:", detail)
    print("INPUT_HEX:", raw.hex())
    raise SystemExit(1)

def render_or_err(raw: bytes) -> str:
    try:
        with parse(raw) as doc:
            return json.dumps(to_json_value(doc), sort_keys=True)
    except BsonError as e:
        return "err:" + e.code
    except Exception as e:
        fail("unexpected exception", raw, repr(e))

def main() -> int:
    for i in range(ROUNDS):
        raw = gen_document(0)

        # A) valid input always parses, and covers exactly the input
        try:
            doc = parse(raw)
        except BsonError as e:
            fail("A valid input rejected", raw, "[{}] {}".format(e.code, e))
        if doc.declared_size != len(raw):
            fail("A declared size", raw, "{} != {}".format(doc.declared_size, len(raw)))
        doc.release()

        # B + C) mutated input: BsonError or success, deterministically
        bad = mutate(raw)
        first = render_or_err(bad)
        second = render_or_err(bad)
        if first != second:
            fail("C non-deterministic", bad, "round {}".format(i))

    print(f"OK: fuzz rounds={ROUNDS} seed={SEED} (no failures)")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
