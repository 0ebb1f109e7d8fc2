import asyncio
import sys
import time
from pathlib import Path

import streamlit as st

sys.path.append(str(Path(__file__).parent.parent))
from recipe_search.config import ConfigurationError, CosmosConfig, OpenAIConfig
from recipe_search.cosmos_db_service import CosmosDbService
from recipe_search.embeddings import EmbeddingService

# Page configuration
st.set_page_config(
    page_title="Recipe Search Assistant",
    layout="wide",
    initial_sidebar_state="collapsed"
)

st.markdown("""
<style>
    .header-container {
        text-align: center;
        padding: 2rem 0 3rem 0;
        background: linear-gradient(135deg, #f7971e 0%, #d35400 100%);
        border-radius: 20px;
        margin-bottom: 2rem;
        box-shadow: 0 10px 40px rgba(211, 84, 0, 0.3);
    }

    .header-title {
        color: white;
        font-size: 2.5rem;
        font-weight: 700;
        margin: 0;
    }

    .header-subtitle {
        color: rgba(255, 255, 255, 0.9);
        font-size: 1.1rem;
        margin-top: 0.5rem;
    }

    .section-header {
        color: #d35400;
        font-size: 1.3rem;
        font-weight: 600;
        margin: 1.5rem 0 1rem 0;
        padding-bottom: 0.5rem;
        border-bottom: 2px solid #f0f0f0;
    }

    .perf-metric {
        background: linear-gradient(135deg, #f7971e 0%, #d35400 100%);
        border-radius: 15px;
        padding: 1.5rem;
        text-align: center;
        color: white;
    }

    .perf-label {
        font-size: 0.9rem;
        opacity: 0.9;
    }

    .perf-value {
        font-size: 2rem;
        font-weight: 700;
    }

    #MainMenu {visibility: hidden;}
    footer {visibility: hidden;}
</style>
""", unsafe_allow_html=True)

st.markdown("""
<div class="header-container">
    <h1 class="header-title">Recipe Search Assistant</h1>
    <p class="header-subtitle">Powered by Azure Cosmos DB Vector Search | Azure OpenAI Embeddings</p>
</div>
""", unsafe_allow_html=True)


@st.cache_data
def get_config():
    """Load .env settings once for all sessions."""
    return CosmosConfig.from_env(), OpenAIConfig.from_env()


try:
    cosmos_config, openai_config = get_config()
except ConfigurationError as e:
    st.error(f"{e}. Please configure the .env file.")
    st.stop()


async def search_recipes(query: str, similarity_score: float, top: int):
    """Embed the query and run the vector search; returns (recipes, timing in ms)."""
    timing = {}
    embeddings = EmbeddingService(openai_config)
    try:
        start = time.time()
        vector = await embeddings.generate_embedding(query)
        timing["embedding"] = (time.time() - start) * 1000

        async with CosmosDbService(cosmos_config) as service:
            start = time.time()
            recipes = await service.single_vector_search(vector, similarity_score, top=top)
            timing["vector_search"] = (time.time() - start) * 1000
    finally:
        await embeddings.close()
    return recipes, timing


col1, col2, col3 = st.columns([4, 1, 1])

with col1:
    user_query = st.text_input(
        "Search Query",
        placeholder="e.g., 'creamy pasta with chicken', 'quick vegetarian dinner'",
        label_visibility="collapsed",
        key="search_input"
    )

with col2:
    similarity_score = st.slider("Min similarity", 0.0, 1.0, 0.7, 0.05)

with col3:
    top = st.number_input("Results", min_value=1, max_value=10, value=3)

search_button = st.button("Search", use_container_width=True)

if search_button or user_query:
    if user_query and user_query.strip():
        t0_total_start = time.time()

        with st.spinner("Searching..."):
            try:
                recipes, timing = asyncio.run(
                    search_recipes(user_query.strip(), similarity_score, int(top))
                )

                st.markdown('<div class="section-header">Performance Metrics</div>', unsafe_allow_html=True)
                col1, col2, col3 = st.columns(3)
                metrics = [
                    ("Embedding Time", timing["embedding"]),
                    ("Vector Search Time", timing["vector_search"]),
                    ("Total Time", (time.time() - t0_total_start) * 1000),
                ]
                for column, (label, value) in zip((col1, col2, col3), metrics):
                    with column:
                        st.markdown(f"""
                        <div class="perf-metric">
                            <div class="perf-label">{label}</div>
                            <div class="perf-value">{value:.1f}ms</div>
                        </div>
                        """, unsafe_allow_html=True)

                st.markdown('<div class="section-header">Matching Recipes</div>', unsafe_allow_html=True)

                if not recipes:
                    st.info(f"No recipes scored above {similarity_score:.2f}")

                for recipe in recipes:
                    with st.expander(f"{recipe.name}  ({recipe.similarity_score:.4f})", expanded=True):
                        if recipe.description:
                            st.markdown(recipe.description)
                        st.markdown(
                            f"**Cuisine:** {recipe.cuisine or '-'} | "
                            f"**Difficulty:** {recipe.difficulty or '-'} | "
                            f"**Total Time:** {recipe.total_time or '-'} | "
                            f"**Servings:** {recipe.servings or '-'}"
                        )
                        if recipe.ingredients:
                            st.markdown("**Ingredients**")
                            st.markdown("\n".join(f"- {i}" for i in recipe.ingredients))

            except Exception as e:
                st.error(f"Error processing query: {str(e)}")
                st.exception(e)
    else:
        st.info("Enter a search query above to get started")

st.markdown("---")
st.markdown("""
<div style="text-align: center; color: #666; font-size: 0.9rem; padding: 1rem;">
    <p>Built with Streamlit & Azure Cosmos DB | Vector Similarity Search for Recipes</p>
</div>
""", unsafe_allow_html=True)
