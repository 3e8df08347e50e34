import pytest

from jsonpb import JsonPbCodec, MarshalOptions, TypeRegistry, UnmarshalOptions
from tests.schemas import EMPLOYEE, SAMPLE


@pytest.fixture
def registry():
    return TypeRegistry([EMPLOYEE, SAMPLE])


@pytest.fixture
def codec(registry):
    return JsonPbCodec(registry)


@pytest.fixture
def make_codec(registry):
    def make(**options):
        unmarshal = {k: options.pop(k) for k in ('discard_unknown',) if k in options}
        return JsonPbCodec(
            registry,
            marshal_options=MarshalOptions(**options),
            unmarshal_options=UnmarshalOptions(**unmarshal),
        )

    return make
