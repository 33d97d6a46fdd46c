"""Tests for the catalog data model."""

import math

from task2model.providers.base import (
    Endpoint,
    Model,
    Pricing,
    parse_modalities,
    parse_price,
    per_million,
    per_token,
)
from tests.fixtures import FIXED_NOW, make_model, make_record


class TestPriceConversion:
    """Tests for per-token and per-1M price handling."""

    def test_parse_price(self):
        """Test decimal strings parse and junk is infinite."""
        assert parse_price("0.000003") == 0.000003
        assert parse_price(0) == 0
        assert math.isinf(parse_price(None))
        assert math.isinf(parse_price(""))
        assert math.isinf(parse_price("n/a"))
        assert math.isinf(parse_price("nan"))

    def test_per_million_round_trip(self):
        """Test per_token undoes per_million."""
        for raw in ("0.000003", "0.0000005", "0.00002"):
            assert math.isclose(per_token(per_million(raw)), float(raw))

    def test_per_million_scale(self):
        """Test 3e-6 per token is $3 per million."""
        assert math.isclose(per_million("0.000003"), 3.0)


class TestModalities:
    """Tests for modality string parsing."""

    def test_text_image_to_text(self):
        assert parse_modalities("text+image->text") == (["text", "image"], ["text"])

    def test_comma_and_slash_separators(self):
        assert parse_modalities("text,audio->text/image") == (
            ["text", "audio"],
            ["text", "image"],
        )

    def test_missing_defaults_to_text(self):
        """Test missing or empty sides default to text."""
        assert parse_modalities(None) == (["text"], ["text"])
        assert parse_modalities("->") == (["text"], ["text"])
        assert parse_modalities("image") == (["image"], ["text"])


class TestModel:
    """Tests for Model.from_openrouter and derived properties."""

    def test_from_openrouter(self):
        """Test building a model from an API record."""
        record = make_record(
            "anthropic/claude-sonnet-4",
            name="Claude Sonnet 4",
            prompt="0.000003",
            completion="0.000015",
            context_length=200000,
            modality="text+image->text",
            supported_parameters=["tools", "temperature"],
        )
        model = Model.from_openrouter(record)

        assert model.id == "anthropic/claude-sonnet-4"
        assert model.name == "Claude Sonnet 4"
        assert model.provider == "anthropic"
        assert model.context_length == 200000
        assert model.input_modalities == ["text", "image"]
        assert model.output_modalities == ["text"]
        assert math.isclose(model.prompt_per_1m, 3.0)
        assert math.isclose(model.completion_per_1m, 15.0)
        assert math.isclose(model.total_per_1m, 18.0)
        assert model.raw is record

    def test_minimal_record(self):
        """Test a record with only an id still produces a usable model."""
        model = Model.from_openrouter({"id": "x/y"})

        assert model.name == "x/y"
        assert model.created is None
        assert model.context_length == 0
        assert model.supported_parameters == []
        assert math.isinf(model.total_per_1m)

    def test_base_id_strips_variant(self):
        assert make_model("openai/gpt-4o:exacto").base_id == "openai/gpt-4o"

    def test_request_price_missing_is_zero(self):
        assert make_model("a/b").request_price == 0.0
        assert make_model("a/b", request="0.01").request_price == 0.01

    def test_is_free(self):
        """Test free detection treats missing prices as zero."""
        assert make_model("a/free", prompt="0", completion="0").is_free is True
        assert make_model("a/none", prompt=None, completion=None).is_free is True
        assert make_model("a/paid").is_free is False

    def test_age_days(self):
        """Test ages are whole days and unknown creation is infinite."""
        assert make_model("a/b", age_days=45).age_days(FIXED_NOW) == 45
        assert math.isinf(make_model("a/b", age_days=None).age_days(FIXED_NOW))

    def test_supports_all(self):
        model = make_model("a/b", supported_parameters=["tools", "tool_choice"])

        assert model.supports_all(["tools"])
        assert model.supports_all(None)
        assert not model.supports_all(["tools", "response_format"])


class TestEndpoint:
    def test_from_openrouter(self):
        data = {
            "name": "Anthropic | claude",
            "provider_name": "Anthropic",
            "context_length": 200000,
            "pricing": {"prompt": "0.000003", "completion": "0.000015"},
            "supported_parameters": ["tools"],
            "quantization": "fp8",
        }
        endpoint = Endpoint.from_openrouter(data)

        assert endpoint.provider_name == "Anthropic"
        assert endpoint.pricing == Pricing(prompt="0.000003", completion="0.000015")
        assert endpoint.supported_parameters == ["tools"]
        assert endpoint.quantization == "fp8"
