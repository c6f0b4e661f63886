import pytest

from modules.auth.exceptions import WeakPasswordError
from modules.auth.passwords import PasswordHasher, validate_password_strength

from tests.conftest import STRONG_PASSWORD


class TestPasswordPolicy:
    def test_strong_password(self):
        validate_password_strength(STRONG_PASSWORD)

    @pytest.mark.parametrize(
        "password, missing",
        [
            ("Sh0rt!", "between 8 and 100 characters"),
            ("NOLOWER1!", "one lowercase letter"),
            ("noupper1!", "one uppercase letter"),
            ("NoDigits!", "one digit"),
            ("NoSpecial1", "one special character"),
            ("Aa1!" + "x" * 97, "between 8 and 100 characters"),
        ],
    )
    def test_weak_passwords(self, password, missing):
        with pytest.raises(WeakPasswordError) as exc_info:
            validate_password_strength(password)
        assert missing in exc_info.value.message
        assert exc_info.value.code == "WEAK_PASSWORD"

    def test_lists_every_missing_rule(self):
        with pytest.raises(WeakPasswordError) as exc_info:
            validate_password_strength("")
        message = exc_info.value.message
        assert "lowercase" in message
        assert "uppercase" in message
        assert "digit" in message

    def test_special_character_set(self):
        for special in "@$!%*?&":
            validate_password_strength(f"Abcdef1{special}")
        with pytest.raises(WeakPasswordError):
            validate_password_strength("Abcdef1#")


class TestPasswordHasher:
    @pytest.fixture
    def hasher(self):
        return PasswordHasher(rounds=4)

    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash(STRONG_PASSWORD)
        assert hashed != STRONG_PASSWORD
        assert hasher.verify(STRONG_PASSWORD, hashed) is True
        assert hasher.verify("Wr0ng!pass", hashed) is False

    def test_salted(self, hasher):
        assert hasher.hash(STRONG_PASSWORD) != hasher.hash(STRONG_PASSWORD)

    def test_empty_password_rejected(self, hasher):
        with pytest.raises(ValueError):
            hasher.hash("")

    @pytest.mark.parametrize("password, stored", [("", "hash"), ("pw", ""), ("pw", "not-a-bcrypt-hash")])
    def test_verify_bad_input(self, hasher, password, stored):
        assert hasher.verify(password, stored) is False
