"""Tests for API key loading, rotation and per-key throttling."""

import pytest

from auth.key_manager import KeyRotator, load_api_keys, mask_key
from recon.errors import ConfigError


class TestLoadApiKeys:
    """Test key sources."""

    def test_literal_key(self):
        assert load_api_keys("abc123") == ["abc123"]

    def test_key_file_skips_comments_blanks_and_cr(self, tmp_path):
        key_file = tmp_path / "keys.txt"
        key_file.write_bytes(b"# primary\r\nkey-one\r\n\r\nkey-two\n   \n#key-three\nkey-four")

        assert load_api_keys(str(key_file)) == ["key-one", "key-two", "key-four"]

    def test_duplicate_keys_are_kept(self, tmp_path):
        key_file = tmp_path / "keys.txt"
        key_file.write_text("same\nsame\n")

        assert load_api_keys(str(key_file)) == ["same", "same"]

    def test_list_source(self):
        assert load_api_keys(["a", " ", "b "]) == ["a", "b"]

    def test_file_without_usable_lines_fails(self, tmp_path):
        key_file = tmp_path / "keys.txt"
        key_file.write_text("# nothing here\n\n")

        with pytest.raises(ConfigError, match="No API key"):
            load_api_keys(str(key_file))

    @pytest.mark.parametrize("source", ["", "   ", None, []])
    def test_empty_literal_fails(self, source):
        with pytest.raises(ConfigError):
            load_api_keys(source)


class TestRotation:
    """Test key selection order."""

    def test_first_always_returns_first_key(self, make_rotator):
        rotator = make_rotator(["k0", "k1", "k2"])

        assert [rotator.first() for _ in range(4)] == ["k0"] * 4

    def test_round_robin_wraps(self, make_rotator):
        keys = ["k0", "k1", "k2"]
        rotator = make_rotator(keys)

        picked = [rotator.next() for _ in range(7)]

        assert picked == [keys[i % len(keys)] for i in range(7)]

    def test_single_key_rotation(self, make_rotator):
        rotator = make_rotator(["only"])

        assert [rotator.next() for _ in range(3)] == ["only"] * 3

    def test_rotator_requires_keys(self):
        with pytest.raises(ConfigError):
            KeyRotator([])


class TestThrottle:
    """Test the per-key minimum gap."""

    def test_first_use_does_not_wait(self, make_rotator, clock):
        rotator = make_rotator(["a"])

        assert rotator.throttle("a") == 0
        assert clock.sleeps == []
        assert rotator.last_used("a") == clock.now

    def test_reuse_waits_for_remaining_gap(self, make_rotator, clock):
        rotator = make_rotator(["a"], min_gap=3)
        rotator.throttle("a")
        clock.now += 1

        waited = rotator.throttle("a")

        assert waited == pytest.approx(2)
        assert clock.sleeps == [pytest.approx(2)]

    def test_reuse_after_gap_does_not_wait(self, make_rotator, clock):
        rotator = make_rotator(["a"], min_gap=3)
        rotator.throttle("a")
        clock.now += 5

        assert rotator.throttle("a") == 0
        assert clock.sleeps == []

    def test_gap_is_per_key(self, make_rotator, clock):
        rotator = make_rotator(["a", "b"], min_gap=3)

        rotator.throttle("a")
        rotator.throttle("b")

        assert clock.sleeps == []

    def test_consecutive_uses_are_spaced(self, make_rotator, clock):
        rotator = make_rotator(["a", "b"], min_gap=3)
        stamps = {"a": [], "b": []}

        for _ in range(6):
            key = rotator.next()
            rotator.throttle(key)
            stamps[key].append(rotator.last_used(key))
            clock.now += 0.5  # request time

        for times in stamps.values():
            gaps = [b - a for a, b in zip(times, times[1:])]
            assert all(g >= 3 for g in gaps)


def test_mask_key():
    assert mask_key("abcd") == "****"
    assert mask_key("0123456789abcdef") == "0123...cdef"
