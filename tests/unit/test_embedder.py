"""Unit tests for embedding shape validation and the Embedder wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from university_rag.config import Settings
from university_rag.errors import EmbeddingError, InputError, ShapeError
from university_rag.ingestion.embedder import (
    Embedder,
    InferenceEndpointEmbeddings,
    build_embedding_backend,
    flatten_embedding,
    to_vector_literal,
)


class TestFlattenEmbedding:
    def test_flat_vector_passes_through(self) -> None:
        assert flatten_embedding([0.1, 0.2, 3]) == [0.1, 0.2, 3.0]

    def test_single_wrapping_is_removed(self) -> None:
        assert flatten_embedding([[0.5, -0.5]]) == [0.5, -0.5]

    def test_three_levels_of_wrapping_allowed(self) -> None:
        assert flatten_embedding([[[[1.0, 2.0]]]]) == [1.0, 2.0]

    def test_four_levels_of_wrapping_rejected(self) -> None:
        with pytest.raises(ShapeError):
            flatten_embedding([[[[[1.0]]]]])

    @pytest.mark.parametrize("payload", [[], [[]], [[[]]]])
    def test_empty_payload_rejected(self, payload) -> None:
        with pytest.raises(ShapeError):
            flatten_embedding(payload)

    def test_tuple_payload_accepted(self) -> None:
        assert flatten_embedding((1, 2)) == [1.0, 2.0]

    @pytest.mark.parametrize("payload", [{"embedding": [1.0]}, "0.1,0.2", 3.0, None])
    def test_non_array_payload_rejected(self, payload) -> None:
        with pytest.raises(ShapeError):
            flatten_embedding(payload)

    @pytest.mark.parametrize("component", ["0.1", None, True, float("nan"), float("inf")])
    def test_bad_component_rejected(self, component) -> None:
        with pytest.raises(ShapeError):
            flatten_embedding([0.1, component])

    def test_array_like_with_tolist(self) -> None:
        class ArrayLike:
            def tolist(self):
                return [[0.25, 0.75]]

        assert flatten_embedding(ArrayLike()) == [0.25, 0.75]


def test_vector_literal() -> None:
    assert to_vector_literal([0.1, 2, -3.5]) == "[0.1,2.0,-3.5]"


class TestEmbedder:
    def test_returns_vector_of_configured_dimension(self) -> None:
        backend = MagicMock()
        backend.embed_query.return_value = [[0.0, 1.0, 0.0]]
        assert Embedder(backend, dimension=3).embed("fees") == [0.0, 1.0, 0.0]

    def test_dimension_mismatch(self) -> None:
        backend = MagicMock()
        backend.embed_query.return_value = [0.1, 0.2]
        with pytest.raises(ShapeError, match="expected 384, got 2"):
            Embedder(backend, dimension=384).embed("fees")

    def test_shape_error_is_an_embedding_error(self) -> None:
        assert issubclass(ShapeError, EmbeddingError)

    def test_backend_failure_wrapped(self) -> None:
        backend = MagicMock()
        backend.embed_query.side_effect = TimeoutError("read timed out")
        with pytest.raises(EmbeddingError, match="read timed out"):
            Embedder(backend, dimension=3).embed("fees")

    def test_blank_text_rejected_before_calling_backend(self) -> None:
        backend = MagicMock()
        with pytest.raises(InputError):
            Embedder(backend, dimension=3).embed("   ")
        backend.embed_query.assert_not_called()


class TestInferenceEndpointEmbeddings:
    def test_embed_query_uses_feature_extraction(self) -> None:
        client = MagicMock()
        client.feature_extraction.return_value = [[0.1, 0.2]]
        backend = InferenceEndpointEmbeddings("some/model", client=client)

        assert backend.embed_query("hello") == [[0.1, 0.2]]
        client.feature_extraction.assert_called_once_with("hello")

    def test_embed_documents(self) -> None:
        client = MagicMock()
        client.feature_extraction.return_value = [0.3]
        backend = InferenceEndpointEmbeddings("some/model", client=client)
        assert backend.embed_documents(["a", "b"]) == [[0.3], [0.3]]


def test_unknown_provider_rejected() -> None:
    with pytest.raises(ValueError, match="embedding_provider"):
        build_embedding_backend(Settings(embedding_provider="bogus"))


def test_inference_api_provider() -> None:
    backend = build_embedding_backend(Settings(embedding_provider="inference_api", huggingface_api_key="hf_x"))
    assert isinstance(backend, InferenceEndpointEmbeddings)
