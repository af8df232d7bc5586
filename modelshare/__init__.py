"""
modelshare: data-access and session layer for a 3D model sharing app.

The package wraps a managed backend (Firebase auth, Firestore documents and
Cloud Storage blobs) behind small client abstractions, with in-memory
implementations for local runs and tests, and serves the single-page UI
through a FastAPI application.
"""
