"""Tests for the recommendation pipeline."""

import pytest

from task2model.config import Settings
from task2model.core.context import AppContext
from task2model.errors import UpstreamError
from task2model.schema import TaskSpec
from tests.fixtures import FIXED_NOW, FakeOpenRouterClient, make_record


def catalog_records():
    return [
        make_record(
            "anthropic/x",
            prompt="0.000003",
            completion="0.000015",
            context_length=200000,
            supported_parameters=["tools"],
            age_days=45,
        ),
        make_record(
            "openai/y",
            prompt="0.000001",
            completion="0.000002",
            context_length=8000,
            supported_parameters=[],
            age_days=400,
        ),
        make_record(
            "meta/z:free",
            prompt="0",
            completion="0",
            context_length=128000,
            supported_parameters=["tools"],
            age_days=10,
        ),
    ]


def build_context(client, memory_store) -> AppContext:
    return AppContext.create(
        Settings(api_key="unused"), client=client, store=memory_store, now=lambda: FIXED_NOW
    )


def spec(**data) -> TaskSpec:
    return TaskSpec.model_validate({"task": "build a coding agent", **data})


class TestRecommender:
    """Tests for Recommender.recommend."""

    @pytest.mark.asyncio
    async def test_reference_scenario(self, memory_store):
        """Test hard constraints, tally and catalog status end to end."""
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(
            spec(hard_constraints={"required_parameters": ["tools"], "exclude_free": True})
        )

        assert [entry["model_id"] for entry in result["shortlist"]] == ["anthropic/x"]
        assert result["excluded_summary"] == {
            "total_models": 3,
            "after_hard_filter": 1,
            "excluded_by": {"missing_required_parameters": 1, "free_model": 1},
        }
        assert result["detail"] == "minimal"
        assert result["ranking"] == "weighted"
        assert result["catalog"]["source"] == "live"
        assert result["catalog"]["auth_used"] is True
        await context.shutdown()

    @pytest.mark.asyncio
    async def test_semantic_similarity_orders_results(self, memory_store):
        """Test the semantically closest model ranks first when other scores tie."""
        records = [
            make_record("a/far", age_days=10),
            make_record("a/near", age_days=10),
        ]
        client = FakeOpenRouterClient(
            records=records,
            embeddings={"a/far": [0.0, 1.0], "a/near": [1.0, 0.0]},
            task_vector=[1.0, 0.0],
        )
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(spec(result={"detail": "names_only"}))

        assert result["shortlist"] == ["a/near", "a/far"]
        assert result["price_range"] == "$3.00-$3.00 per 1M tokens (prompt+completion)"
        assert "notes" not in result

    @pytest.mark.asyncio
    async def test_without_key_notes_neutral_scoring(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records(), api_key=None)
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(spec())

        assert len(result["shortlist"]) == 3
        assert result["catalog"]["auth_used"] is False
        assert "no API key" in result["notes"][0]

    @pytest.mark.asyncio
    async def test_semantic_search_disabled(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(
            spec(preferences={"use_semantic_search": False})
        )

        assert client.embedded_texts == []
        assert "notes" not in result

    @pytest.mark.asyncio
    async def test_semantic_ranking_applies_age_ceiling(self, memory_store):
        """Test semantic ranking drops models older than 365 days by default."""
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(
            spec(preferences={"ranking": "semantic"}, result={"detail": "names_only"})
        )

        assert "openai/y" not in result["shortlist"]
        assert result["excluded_summary"]["excluded_by"] == {"too_old": 1}

    @pytest.mark.asyncio
    async def test_limit_truncates(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        result = await context.recommender.recommend(spec(result={"limit": 2}))

        assert len(result["shortlist"]) == 2
        assert result["excluded_summary"]["after_hard_filter"] == 3

    @pytest.mark.asyncio
    async def test_second_call_uses_cache_unless_forced(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        first = await context.recommender.recommend(spec())
        second = await context.recommender.recommend(spec())
        forced = await context.recommender.recommend(spec(result={"force_refresh": True}))

        assert first["catalog"]["source"] == "live"
        assert second["catalog"]["source"] == "cache"
        assert forced["catalog"]["source"] == "live"
        assert client.list_models_calls == 2

    @pytest.mark.asyncio
    async def test_catalog_failure_propagates(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records())
        client.models_error = UpstreamError("bad gateway", status=502)
        context = build_context(client, memory_store)

        with pytest.raises(UpstreamError):
            await context.recommender.recommend(spec())

    @pytest.mark.asyncio
    async def test_shutdown_flushes_and_closes(self, memory_store):
        client = FakeOpenRouterClient(records=catalog_records())
        context = build_context(client, memory_store)

        await context.recommender.recommend(spec())
        await context.shutdown()

        assert client.closed
        assert memory_store.blobs["meta"]["model_count"] == 3
        assert memory_store.blobs["embeddings"]["model_count"] == 3
