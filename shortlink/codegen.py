"""Short code generators.

Generators only make collisions rare; the store's unique index is what
makes codes unique. The default generator keeps one ``random.Random`` per
thread, each seeded independently from the OS, so concurrent workers never
share PRNG state or produce correlated sequences.
"""

import random
import threading
from typing import Protocol

from nanoid import generate as nanoid_generate

from shortlink.config import Settings
from shortlink.enums import CodeGeneratorKind

__all__ = [
    "CodeGenerator",
    "RandomCodeGenerator",
    "NanoidCodeGenerator",
    "build_code_generator",
]


class CodeGenerator(Protocol):
    def generate(self) -> str: ...


class RandomCodeGenerator:
    """Uniform codes from a thread-local, non-cryptographic PRNG."""

    def __init__(self, alphabet: str, length: int) -> None:
        assert alphabet, "alphabet must not be empty"
        assert length > 0, f"length must be positive, got {length!r}"
        self.alphabet = alphabet
        self.length = length
        self._local = threading.local()

    def _rng(self) -> random.Random:
        rng = getattr(self._local, "rng", None)
        if rng is None:
            rng = random.Random()
            self._local.rng = rng
        return rng

    def generate(self) -> str:
        return "".join(self._rng().choices(self.alphabet, k=self.length))


class NanoidCodeGenerator:
    """Uniform codes from nanoid's OS-backed random source."""

    def __init__(self, alphabet: str, length: int) -> None:
        assert alphabet, "alphabet must not be empty"
        assert length > 0, f"length must be positive, got {length!r}"
        self.alphabet = alphabet
        self.length = length

    def generate(self) -> str:
        return nanoid_generate(self.alphabet, self.length)


def build_code_generator(settings: Settings) -> CodeGenerator:
    kind = CodeGeneratorKind(settings.CODE_GENERATOR)
    if kind is CodeGeneratorKind.NANOID:
        return NanoidCodeGenerator(settings.SHORT_CODE_ALPHABET, settings.SHORT_CODE_LENGTH)
    return RandomCodeGenerator(settings.SHORT_CODE_ALPHABET, settings.SHORT_CODE_LENGTH)
