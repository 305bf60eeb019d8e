"""
Serving — FastAPI application for document upload and question answering.

Run with ``uvicorn university_rag.serving.app:app``.
"""
