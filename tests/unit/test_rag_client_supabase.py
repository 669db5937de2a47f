"""
Test suite for the Supabase vector store adapter.

Verifies the PostgREST requests built for each operation and the parsing of
their responses, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.supabase.RAGClientSupabase import RAGClientSupabase
from shared.helper.HelperConfig import HelperConfig

ROWS = [
    {"id": "halal-1-aaaa", "content": "All meat is halal.", "metadata": {"source": "faq", "language": "fr", "source_title": "Halal"}},
    {"id": "hours-1-bbbb", "content": "Open 18h-02h.", "metadata": {"source": "faq", "language": "en", "source_title": "Hours"}},
    {"id": "cgv-1-cccc", "content": "Terms.", "metadata": {"source": "legal", "language": "fr", "source_title": "CGV"}},
]


@pytest.fixture
async def supabase_client(helper_config: HelperConfig):
    client = RAGClientSupabase(helper_config=helper_config)
    yield client
    await client.close()


class TestSupabaseWrites:
    async def test_index_should_upsert_row_with_merge_preference(
        self, supabase_client, make_transport, recorded_requests
    ) -> None:
        # Arrange
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(201)))

        # Act
        await supabase_client.do_index_document("halal-1-aaaa", "All meat is halal.", [0.1, 0.2, 0.3, 0.4], {"source": "faq"})

        # Assert
        request = recorded_requests[0]
        assert request.method == "POST"
        assert request.url.path == "/rest/v1/rag_documents"
        assert request.headers["Prefer"] == "resolution=merge-duplicates,return=minimal"
        assert request.headers["apikey"] == "service-role-key"
        assert request.headers["Authorization"] == "Bearer service-role-key"
        body = json.loads(request.content)
        assert body["id"] == "halal-1-aaaa"
        assert body["embedding"] == [0.1, 0.2, 0.3, 0.4]
        assert body["metadata"] == {"source": "faq"}
        assert "indexed_at" in body

    async def test_index_should_raise_when_store_rejects_write(self, supabase_client, make_transport) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(409, json={"message": "conflict"})))

        with pytest.raises(Exception, match="status 409"):
            await supabase_client.do_index_document("x", "y", [0.0] * 4, {})

    async def test_delete_should_filter_by_id(self, supabase_client, make_transport, recorded_requests) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(204)))

        await supabase_client.do_delete_document("hours-1-bbbb")

        request = recorded_requests[0]
        assert request.method == "DELETE"
        assert request.url.params["id"] == "eq.hours-1-bbbb"


class TestSupabaseReads:
    async def test_semantic_search_should_call_rpc_and_keep_order(
        self, supabase_client, make_transport, recorded_requests
    ) -> None:
        # Arrange
        rows = [{**ROWS[1], "similarity": 0.91}, {**ROWS[0], "similarity": 0.72}]
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=rows)))

        # Act
        matches = await supabase_client.do_semantic_search([0.1, 0.2, 0.3, 0.4], limit=2, threshold=0.6)

        # Assert
        request = recorded_requests[0]
        assert request.url.path == "/rest/v1/rpc/search_documents"
        assert json.loads(request.content) == {
            "query_embedding": [0.1, 0.2, 0.3, 0.4],
            "match_count": 2,
            "match_threshold": 0.6,
        }
        assert [m.id for m in matches] == ["hours-1-bbbb", "halal-1-aaaa"]
        assert matches[0].similarity == 0.91

    async def test_keyword_search_should_use_full_text_filter(
        self, supabase_client, make_transport, recorded_requests
    ) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=[ROWS[0]])))

        matches = await supabase_client.do_keyword_search("halal meat", limit=3)

        request = recorded_requests[0]
        assert request.method == "GET"
        assert request.url.params["content"] == "plfts.halal meat"
        assert request.url.params["limit"] == "3"
        assert matches[0].similarity is None

    async def test_get_document_should_return_none_when_missing(self, supabase_client, make_transport) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=[])))

        assert await supabase_client.do_get_document("unknown") is None

    async def test_get_document_should_return_first_row(self, supabase_client, make_transport) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=[ROWS[2]])))

        match = await supabase_client.do_get_document("cgv-1-cccc")

        assert match is not None
        assert match.get_title() == "CGV"

    async def test_list_should_filter_on_metadata(self, supabase_client, make_transport, recorded_requests) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=ROWS[:2])))

        docs = await supabase_client.do_list_documents(source="faq", language="fr")

        params = recorded_requests[0].url.params
        assert params["metadata->>source"] == "eq.faq"
        assert params["metadata->>language"] == "eq.fr"
        assert len(docs) == 2

    async def test_stats_should_count_by_source_and_language(self, supabase_client, make_transport) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json=ROWS)))

        stats = await supabase_client.do_get_stats()

        assert stats.total == 3
        assert stats.by_source == {"faq": 2, "legal": 1}
        assert stats.by_language == {"fr": 2, "en": 1}

    async def test_reads_should_reject_non_list_payload(self, supabase_client, make_transport) -> None:
        await supabase_client.boot(transport=make_transport(lambda request: httpx.Response(200, json={"oops": 1})))

        with pytest.raises(ValueError):
            await supabase_client.do_keyword_search("fries")

    async def test_requests_should_fail_before_boot(self, supabase_client) -> None:
        with pytest.raises(Exception, match="boot"):
            await supabase_client.do_keyword_search("fries")


class TestRAGClientManager:
    def test_manager_should_default_to_supabase(self, helper_config: HelperConfig, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RAG_ENGINE")

        client = RAGClientManager(helper_config=helper_config).get_client()

        assert isinstance(client, RAGClientSupabase)
        assert client.get_client_type() == "rag"
