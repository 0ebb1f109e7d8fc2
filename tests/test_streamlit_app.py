"""
Test suite for the Streamlit recipe search page.

Runs the page headless with streamlit.testing; no search is submitted, so no
Azure service is contacted.
"""

from pathlib import Path

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

APP_PATH = str(Path(__file__).parent.parent / "apps" / "streamlit_app.py")

ENV = {
    "COSMOS_ENDPOINT": "https://test-account.documents.azure.com:443/",
    "COSMOS_KEY": "test-key",
    "AZURE_OPENAI_ENDPOINT": "https://test-resource.openai.azure.com/",
    "AZURE_OPENAI_API_KEY": "test-key",
    "AZURE_OPENAI_CHAT_DEPLOYMENT": "gpt-4o",
    "AZURE_OPENAI_EMBEDDING_DEPLOYMENT": "text-embedding-ada-002",
}


@pytest.fixture(autouse=True)
def fresh_cache():
    st.cache_data.clear()
    yield
    st.cache_data.clear()


def _run(monkeypatch, env):
    for name, value in env.items():
        monkeypatch.setenv(name, value)
    return AppTest.from_file(APP_PATH, default_timeout=30).run()


class TestStreamlitApp:
    def test_missing_configuration_is_reported(self, monkeypatch):
        at = _run(monkeypatch, {**ENV, "COSMOS_ENDPOINT": ""})

        assert len(at.error) == 1
        assert at.error[0].value.startswith("Missing")
        assert at.error[0].value.endswith("Please configure the .env file.")
        assert len(at.button) == 0

    def test_empty_search_prompts_for_query(self, monkeypatch):
        at = _run(monkeypatch, ENV)
        assert not at.exception
        assert at.button[0].label == "Search"

        at.button[0].click().run()

        assert [info.value for info in at.info] == ["Enter a search query above to get started"]
        assert len(at.error) == 0
