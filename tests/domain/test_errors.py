"""Tests for the cloning exception hierarchy and its messages."""

from __future__ import annotations

import pytest

from planclone.domain.errors import (
    CloningError,
    DomainConfigurationError,
    MissingDefaultConstructorError,
    MissingWriteAccessorError,
    UndeclaredAttributeError,
    UnknownEntitySubclassError,
    UnknownRootSubclassError,
    UnknownSubclassError,
    UnresolvableElementTypeError,
    qualified_name,
)
from tests.conftest import ExtendedSchedule, NightShift, OvertimeShift, Schedule, Shift


class TestQualifiedName:
    def test_module_and_qualname(self) -> None:
        assert qualified_name(Shift) == "tests.conftest.Shift"


class TestUnknownSubclass:
    def test_root_message_lists_all_known(self) -> None:
        err = UnknownRootSubclassError(ExtendedSchedule, [Schedule])
        assert str(err) == (
            "Failed to create clone: encountered (tests.conftest.ExtendedSchedule) "
            "which is not a known solution subclass. "
            "The known subclasses are [tests.conftest.Schedule]. "
            "Register the class or use one of the registered classes instead."
        )

    def test_entity_message(self) -> None:
        err = UnknownEntitySubclassError(OvertimeShift, (NightShift, Shift))
        assert "not a known entity subclass" in str(err)
        assert "[tests.conftest.NightShift, tests.conftest.Shift]" in str(err)
        assert err.known == (NightShift, Shift)

    @pytest.mark.parametrize("error_cls", [UnknownRootSubclassError, UnknownEntitySubclassError])
    def test_hierarchy(self, error_cls: type[UnknownSubclassError]) -> None:
        err = error_cls(OvertimeShift, [Shift])
        assert isinstance(err, CloningError)
        assert isinstance(err, TypeError)
        assert not isinstance(err, DomainConfigurationError)


class TestConfigurationErrors:
    def test_missing_write_accessor(self) -> None:
        err = MissingWriteAccessorError("code", Shift)
        assert err.member_name == "code"
        assert "(code)" in str(err)
        assert "(tests.conftest.Shift)" in str(err)

    def test_unresolvable_element_type_detail(self) -> None:
        err = UnresolvableElementTypeError(list, "Parameterize it.")
        assert str(err) == "Cannot infer element type for container type (<class 'list'>). Parameterize it."

    def test_missing_default_constructor(self) -> None:
        err = MissingDefaultConstructorError(Schedule, ["name"])
        assert "['name']" in str(err)

    def test_undeclared_attributes_sorted(self) -> None:
        err = UndeclaredAttributeError(Shift, ["zeta", "alpha"])
        assert "['alpha', 'zeta']" in str(err)
        assert err.attributes == ("zeta", "alpha")

    @pytest.mark.parametrize(
        "err",
        [
            MissingWriteAccessorError("code", Shift),
            UnresolvableElementTypeError(list),
            MissingDefaultConstructorError(Schedule, ["name"]),
            UndeclaredAttributeError(Shift, ["note"]),
        ],
    )
    def test_all_are_configuration_errors(self, err: CloningError) -> None:
        assert isinstance(err, DomainConfigurationError)
