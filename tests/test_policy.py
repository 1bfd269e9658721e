from __future__ import annotations

from motbot.bot.policy import AccessPolicy, normalize_identity


def test_normalize_identity_strips_marker_and_whitespace() -> None:
    assert normalize_identity(" @alice ") == "alice"
    assert normalize_identity("12345") == "12345"
    assert normalize_identity("@") == ""


def test_numeric_id_matches() -> None:
    policy = AccessPolicy.from_entries(["12345"])
    assert policy.allows(12345)
    assert not policy.allows(54321)


def test_handle_matches_with_or_without_marker() -> None:
    for entry in ("@alice", "alice"):
        policy = AccessPolicy.from_entries([entry])
        assert policy.allows(1, "alice")
        assert policy.allows(1, "@alice")


def test_handle_match_is_case_sensitive() -> None:
    policy = AccessPolicy.from_entries(["@Alice"])
    assert policy.allows(1, "Alice")
    assert not policy.allows(1, "alice")


def test_empty_policy_denies_everyone() -> None:
    policy = AccessPolicy.from_entries([])
    assert not policy.allows(12345, "alice")
    assert not policy.allows(None, "")


def test_empty_handle_never_matches() -> None:
    policy = AccessPolicy.from_entries(["@", "  ", "99"])
    assert policy.admins == frozenset({"99"})
    assert not policy.allows(None, "")
    assert not policy.allows(None, "@")


def test_id_and_handle_entries_can_be_mixed() -> None:
    policy = AccessPolicy.from_entries(["12345", "@bob"])
    assert policy.allows(12345, "someone")
    assert policy.allows(777, "bob")
    assert not policy.allows(777, "carol")
