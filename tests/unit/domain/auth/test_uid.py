"""Unit tests for the Uid value object."""

import pytest
from pydantic import ValidationError

from fedbroker.domain.auth.model.value import Uid


class TestUid:
    def test_compose_joins_provider_and_external_id(self):
        uid = Uid.compose("x", "42")

        assert str(uid) == "x:42"
        assert uid.provider_id == "x"
        assert uid.external_id == "42"

    def test_external_id_may_contain_separator(self):
        uid = Uid.compose("discord", "a:b")

        assert uid.provider_id == "discord"
        assert uid.external_id == "a:b"

    def test_same_inputs_give_equal_hashable_uids(self):
        assert Uid.compose("x", "42") == Uid("x:42")
        assert len({Uid.compose("x", "42"), Uid("x:42")}) == 1

    @pytest.mark.parametrize("raw", ["x42", ":42", "x:", "X:42", "a b:1"])
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            Uid(raw)
