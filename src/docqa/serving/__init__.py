"""
Serving — FastAPI application exposing ingestion and question answering.

Run with ``uvicorn docqa.serving.app:app``.
"""
