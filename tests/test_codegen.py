"""Unit tests for short code generators."""

import threading

import pytest

from shortlink.codegen import NanoidCodeGenerator, RandomCodeGenerator, build_code_generator
from shortlink.config import Settings

ALPHABET = Settings().SHORT_CODE_ALPHABET


def test_generate_default_length() -> None:
    generator = RandomCodeGenerator(ALPHABET, 6)
    assert len(generator.generate()) == 6


def test_generate_only_alphanumeric() -> None:
    generator = RandomCodeGenerator(ALPHABET, 6)
    for _ in range(100):
        code = generator.generate()
        assert all(c in ALPHABET for c in code)
        assert code.isalnum()


def test_generate_uniqueness() -> None:
    generator = RandomCodeGenerator(ALPHABET, 6)
    codes = {generator.generate() for _ in range(1000)}
    # With 62^6 possibilities, 1000 codes should all be unique
    assert len(codes) == 1000


def test_generate_covers_alphabet() -> None:
    generator = RandomCodeGenerator("ab", 8)
    seen = set("".join(generator.generate() for _ in range(50)))
    assert seen == {"a", "b"}


def test_threads_use_independent_generators() -> None:
    generator = RandomCodeGenerator(ALPHABET, 6)
    results: dict[int, list[str]] = {}

    def worker(index: int) -> None:
        results[index] = [generator.generate() for _ in range(20)]

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    sequences = [tuple(codes) for codes in results.values()]
    assert len(set(sequences)) == 4


def test_nanoid_generator() -> None:
    generator = NanoidCodeGenerator(ALPHABET, 6)
    code = generator.generate()
    assert len(code) == 6
    assert all(c in ALPHABET for c in code)


def test_build_code_generator_from_settings() -> None:
    assert isinstance(build_code_generator(Settings()), RandomCodeGenerator)
    assert isinstance(build_code_generator(Settings(CODE_GENERATOR="nanoid")), NanoidCodeGenerator)


def test_build_code_generator_unknown_kind() -> None:
    with pytest.raises(ValueError):
        build_code_generator(Settings(CODE_GENERATOR="sequential"))
