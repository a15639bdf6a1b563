"""Tests for clinicboost.cache.keys: canonical argument keys."""

import pytest
from pydantic import BaseModel

from clinicboost.cache.errors import CacheError, KeyGenerationError
from clinicboost.cache.keys import default_key, namespace_for


class Clinic(BaseModel):
    id: int
    name: str


def lookup_patient(patient_id):
    return patient_id


class TestDefaultKey:
    def test_positional_args(self):
        assert default_key(1, "a") == '[[1,"a"],{}]'

    def test_kwargs_are_order_independent(self):
        assert default_key(a=1, b=2) == default_key(b=2, a=1)

    def test_dict_argument_order_independent(self):
        assert default_key({"x": 1, "y": 2}) == default_key({"y": 2, "x": 1})

    def test_different_args_differ(self):
        assert default_key(1) != default_key(2)
        assert default_key(1) != default_key("1")

    def test_pydantic_model_encoded_by_fields(self):
        assert default_key(Clinic(id=1, name="North")) == default_key(Clinic(id=1, name="North"))
        assert default_key(Clinic(id=1, name="North")) != default_key(Clinic(id=2, name="North"))

    def test_sets_are_order_independent(self):
        assert default_key({3, 1, 2}) == default_key({2, 3, 1})

    def test_circular_reference_raises(self):
        data: list = []
        data.append(data)
        with pytest.raises(KeyGenerationError, match="Cannot derive cache key"):
            default_key(data)

    def test_key_generation_error_is_cache_error(self):
        assert issubclass(KeyGenerationError, CacheError)

    def test_mixed_dict_key_types(self):
        assert default_key({1: "a", "b": 2}) == '[[{"1":"a","b":2}],{}]'

    def test_mixed_dict_key_types_nested_in_kwargs(self):
        assert default_key(fees={2: 10, "base": 5}) == default_key(fees={"base": 5, 2: 10})

    def test_shared_non_circular_reference_is_fine(self):
        shared = {"id": 1}
        assert default_key([shared, shared]) == '[[[{"id":1},{"id":1}]],{}]'


class TestNamespaceFor:
    def test_module_and_qualname(self):
        assert namespace_for(lookup_patient) == f"{__name__}.lookup_patient"

    def test_lambda_gets_object_token(self):
        namespace = namespace_for(lambda: None)
        assert f"{__name__}.TestNamespaceFor.test_lambda_gets_object_token.<locals>.<lambda>#" in namespace

    def test_distinct_lambdas_get_distinct_namespaces(self):
        assert namespace_for(lambda x: x + 1) != namespace_for(lambda x: x * 2)

    def test_closures_from_one_factory_differ(self):
        def make(factor):
            def scale(x):
                return x * factor

            return scale

        assert namespace_for(make(2)) != namespace_for(make(3))

    def test_same_function_object_is_stable(self):
        def local():
            return None

        assert namespace_for(local) == namespace_for(local)
