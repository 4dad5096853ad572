"""Tests for data models and delete notification decoding."""

import pytest
from pydantic import ValidationError

from rolesync.errors import MalformedInputError
from rolesync.models import (
    ControllerConfig,
    LiveValue,
    ObjectMeta,
    Policy,
    SourceRole,
    Tombstone,
    decode_deleted_policy,
)


def _policy() -> Policy:
    return Policy(
        metadata=ObjectMeta(namespace="a", name="default"),
        roles={"r1": SourceRole(metadata=ObjectMeta(namespace="a", name="r1"))},
    )


class TestDecodeDeletedPolicy:
    def test_live_value(self):
        policy = _policy()
        assert decode_deleted_policy(LiveValue(value=policy)) is policy

    def test_tombstone(self):
        policy = _policy()
        assert decode_deleted_policy(Tombstone(key="a/default", last_known=policy)) is policy

    def test_dict_forms(self):
        live = decode_deleted_policy({"kind": "live", "value": _policy().model_dump()})
        tomb = decode_deleted_policy(
            {"kind": "tombstone", "key": "a/default", "last_known": _policy().model_dump(mode="json")}
        )

        assert live.model_dump() == tomb.model_dump() == _policy().model_dump()

    @pytest.mark.parametrize("notification", [
        LiveValue(value="not a policy"),
        Tombstone(key="a/default"),
        Tombstone(key="a/default", last_known={"roles": {}}),
        {"kind": "unknown"},
        _policy(),
        None,
    ])
    def test_undecodable(self, notification):
        with pytest.raises(MalformedInputError):
            decode_deleted_policy(notification)


class TestControllerConfig:
    def test_defaults(self):
        config = ControllerConfig()
        assert config.workers == 1
        assert config.base_delay_seconds == 0.005
        assert config.max_delay_seconds == 1000.0

    def test_rejects_nonpositive_workers(self):
        with pytest.raises(ValidationError):
            ControllerConfig(workers=0)


class TestObjectMeta:
    def test_defaults_are_independent(self):
        a = ObjectMeta(name="x")
        b = ObjectMeta(name="y")
        a.labels["k"] = "v"
        assert b.labels == {}
