# test/test_exceptions.py
import pytest

from neurotensor.core import (
    CoreError,
    InvalidArgument,
    StateError,
    PreconditionFailed,
    ChannelNotFound,
    EpochNotFound,
    ComponentNotFound,
)


def test_exception_inheritance_validation():
    assert issubclass(InvalidArgument, CoreError)
    assert issubclass(InvalidArgument, ValueError)
    assert issubclass(PreconditionFailed, CoreError)
    assert not issubclass(PreconditionFailed, InvalidArgument)


def test_state_error_is_an_invalid_argument():
    assert issubclass(StateError, InvalidArgument)
    with pytest.raises(InvalidArgument):
        raise StateError("not epoched")


def test_exception_inheritance_lookup():
    assert issubclass(ChannelNotFound, KeyError)
    assert issubclass(ChannelNotFound, InvalidArgument)
    assert issubclass(EpochNotFound, IndexError)
    assert issubclass(EpochNotFound, InvalidArgument)
    assert issubclass(ComponentNotFound, KeyError)
    assert issubclass(ComponentNotFound, CoreError)


def test_lookup_errors_can_be_raised_and_caught_as_builtin_errors():
    with pytest.raises(KeyError):
        raise ChannelNotFound("Cz")

    with pytest.raises(IndexError):
        raise EpochNotFound(7)

    with pytest.raises(ValueError):
        raise ChannelNotFound("Cz")
