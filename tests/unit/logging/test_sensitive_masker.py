"""
Tests unitaires pour Logging - Sensitive Masker

Les identifiants d'accès aux clusters ne doivent jamais apparaître en
clair dans les logs.
"""

import pytest

from src.logging import (
    SensitiveMasker,
    ISensitiveMasker,
)


class TestSensitiveDataMasking:
    """Masquage des valeurs sensibles."""

    def test_kubeconfig_masked(self) -> None:
        masker = SensitiveMasker()
        data = {"cluster": "prod", "kubeconfig": "apiVersion: v1\nclusters: []"}
        result = masker.mask(data)

        assert result["cluster"] == "prod"
        assert result["kubeconfig"] == "***MASKED***"

    def test_token_masked(self) -> None:
        masker = SensitiveMasker()
        data = {"user": "admin", "bearer_token": "eyJhbGc..."}
        result = masker.mask(data)

        assert result["user"] == "admin"
        assert result["bearer_token"] == "***MASKED***"

    @pytest.mark.parametrize(
        "key",
        [
            "password",
            "client_secret",
            "certificate-authority-data",
            "client-certificate-data",
            "client-key-data",
            "private_key",
            "Authorization",
            "credentials",
        ],
    )
    def test_credential_keys_masked(self, key: str) -> None:
        masker = SensitiveMasker()

        assert masker.mask({key: "value"})[key] == "***MASKED***"

    def test_nested_dict_masked(self) -> None:
        masker = SensitiveMasker()
        data = {
            "cluster": {"name": "prod", "token": "abc"},
            "users": [{"name": "admin", "client-key-data": "LS0t"}],
        }
        result = masker.mask(data)

        assert result["cluster"]["name"] == "prod"
        assert result["cluster"]["token"] == "***MASKED***"
        assert result["users"][0]["name"] == "admin"
        assert result["users"][0]["client-key-data"] == "***MASKED***"

    def test_nested_lists_preserved(self) -> None:
        masker = SensitiveMasker()
        data = {"targets": [["m-1", "m-2"], [{"secret": "x"}]]}
        result = masker.mask(data)

        assert result["targets"][0] == ["m-1", "m-2"]
        assert result["targets"][1][0]["secret"] == "***MASKED***"

    def test_original_not_modified(self) -> None:
        masker = SensitiveMasker()
        data = {"token": "abc"}
        masker.mask(data)

        assert data["token"] == "abc"

    def test_non_dict_returned_as_is(self) -> None:
        masker = SensitiveMasker()

        assert masker.mask("plain") == "plain"  # type: ignore[arg-type]


class TestSensitiveMaskerPatterns:
    """Gestion des patterns."""

    def test_default_patterns_loaded(self) -> None:
        masker = SensitiveMasker()

        assert "kubeconfig" in masker.patterns
        assert "token" in masker.patterns

    def test_additional_patterns(self) -> None:
        masker = SensitiveMasker(additional_patterns=["Provider-ID"])

        assert masker.is_sensitive_key("node_provider-id")

    def test_add_pattern(self) -> None:
        masker = SensitiveMasker()
        masker.add_pattern("userdata")

        assert masker.mask({"bootstrap_userdata": "#cloud-config"})["bootstrap_userdata"] == "***MASKED***"

    @pytest.mark.parametrize("pattern", ["", "   "])
    def test_add_empty_pattern_rejected(self, pattern: str) -> None:
        masker = SensitiveMasker()

        with pytest.raises(ValueError):
            masker.add_pattern(pattern)

    def test_add_pattern_no_duplicates(self) -> None:
        masker = SensitiveMasker()
        before = len(masker.patterns)
        masker.add_pattern("TOKEN")

        assert len(masker.patterns) == before

    def test_remove_pattern(self) -> None:
        masker = SensitiveMasker()

        assert masker.remove_pattern("token") is True
        assert masker.remove_pattern("token") is False
        assert masker.mask({"token": "abc"})["token"] == "abc"

    def test_is_sensitive_key_edge_cases(self) -> None:
        masker = SensitiveMasker()

        assert masker.is_sensitive_key("") is False
        assert masker.is_sensitive_key("machine") is False
        assert masker.is_sensitive_key("KUBECONFIG") is True


class TestSensitiveMaskerInterface:
    """Contrat d'interface."""

    def test_implements_interface(self) -> None:
        assert isinstance(SensitiveMasker(), ISensitiveMasker)

    def test_mask_value_constant(self) -> None:
        assert ISensitiveMasker.MASK_VALUE == "***MASKED***"
