"""
허용 사용자 확인 테스트
"""

from teamboard.auth import is_allowed_user


class TestIsAllowedUser:

    def test_email_match_ignores_case(self) -> None:
        assert is_allowed_user("Owner@Example.COM", None, allowed_email="owner@example.com",
                               allowed_user_id="") is True

    def test_other_email_denied(self) -> None:
        assert is_allowed_user("someone@example.com", None, allowed_email="owner@example.com",
                               allowed_user_id="") is False

    def test_uid_used_when_no_email_configured(self) -> None:
        assert is_allowed_user(None, "uid-123", allowed_email="", allowed_user_id="uid-123") is True
        assert is_allowed_user(None, "uid-999", allowed_email="", allowed_user_id="uid-123") is False

    def test_uid_fallback_when_user_has_no_email(self) -> None:
        assert is_allowed_user(None, "uid-123", allowed_email="owner@example.com",
                               allowed_user_id="uid-123") is True

    def test_nothing_configured_denies(self) -> None:
        assert is_allowed_user("owner@example.com", "uid", allowed_email="", allowed_user_id="") is False

    def test_reads_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("ALLOWED_EMAIL", "env@example.com")
        monkeypatch.delenv("ALLOWED_USER_ID", raising=False)
        assert is_allowed_user("env@example.com", None) is True
