"""
Core modules for Azure Cosmos DB vector search and Azure OpenAI integration.

This package contains the configuration, recipe model, bulk operation
aggregation, Cosmos DB access, embedding and chat modules used across the
console applications and the Streamlit app.
"""
