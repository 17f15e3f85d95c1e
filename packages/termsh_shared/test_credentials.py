"""Unit tests for credential verification."""

import pytest

from termsh_shared.credentials import (
    HASH_SCHEME,
    HashedCredentialVerifier,
    StaticCredentialVerifier,
    hash_password,
    parse_password_hash,
    verify_password,
)
from termsh_shared.passgen import main as passgen_main


# Keep the tests fast
ITERATIONS = 1000


class TestHashPassword:
    """Tests for hash_password() and friends."""

    def test_format(self):
        encoded = hash_password("pw", iterations=ITERATIONS)
        scheme, iterations, salt, digest = encoded.split("$")
        assert scheme == HASH_SCHEME
        assert iterations == str(ITERATIONS)
        assert len(salt) == 32
        assert len(digest) == 64

    def test_random_salt(self):
        assert hash_password("pw", iterations=ITERATIONS) != hash_password("pw", iterations=ITERATIONS)

    def test_fixed_salt_deterministic(self):
        a = hash_password("pw", salt="abcd", iterations=ITERATIONS)
        b = hash_password("pw", salt="abcd", iterations=ITERATIONS)
        assert a == b

    def test_verify_password(self):
        encoded = hash_password("correct horse", iterations=ITERATIONS)
        assert verify_password("correct horse", encoded) is True
        assert verify_password("wrong horse", encoded) is False

    @pytest.mark.parametrize("bad", [
        "",
        "plain-text",
        "md5$1000$salt$digest",
        f"{HASH_SCHEME}$abc$salt$digest",
        f"{HASH_SCHEME}$0$salt$digest",
        f"{HASH_SCHEME}$1000$$digest",
    ])
    def test_parse_rejects_malformed(self, bad):
        with pytest.raises(ValueError):
            parse_password_hash(bad)


class TestStaticCredentialVerifier:
    """Tests for the fixed-pair verifier."""

    def test_match(self):
        assert StaticCredentialVerifier("admin", "pw").verify("admin", "pw") is True

    def test_wrong_password(self):
        assert StaticCredentialVerifier("admin", "pw").verify("admin", "nope") is False

    def test_wrong_username(self):
        assert StaticCredentialVerifier("admin", "pw").verify("root", "pw") is False

    def test_exact_comparison(self):
        verifier = StaticCredentialVerifier("admin", "pw")
        assert verifier.verify("Admin", "pw") is False
        assert verifier.verify("admin ", "pw") is False

    def test_non_ascii(self):
        assert StaticCredentialVerifier("józef", "hasło").verify("józef", "hasło") is True


class TestHashedCredentialVerifier:
    """Tests for the salted-hash verifier."""

    def test_match(self):
        verifier = HashedCredentialVerifier("admin", hash_password("pw", iterations=ITERATIONS))
        assert verifier.verify("admin", "pw") is True
        assert verifier.verify("admin", "pw2") is False
        assert verifier.verify("other", "pw") is False

    def test_rejects_malformed_hash(self):
        with pytest.raises(ValueError):
            HashedCredentialVerifier("admin", "not-a-hash")


class TestPassgen:
    """Tests for the termsh-passgen CLI."""

    def test_prints_verifiable_hash(self, capsys):
        passgen_main(["-p", "s3cret", "-i", str(ITERATIONS)])
        out = capsys.readouterr().out.strip()

        assert out.startswith("TERMSH_PASSWORD_HASH='")
        encoded = out.split("=", 1)[1].strip("'")
        assert verify_password("s3cret", encoded) is True

    def test_rejects_empty_password(self):
        with pytest.raises(SystemExit):
            passgen_main(["-p", ""])

    def test_rejects_bad_iterations(self):
        with pytest.raises(SystemExit):
            passgen_main(["-p", "x", "-i", "0"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
