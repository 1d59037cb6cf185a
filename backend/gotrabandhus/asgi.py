"""Entry point for uvicorn: ``uvicorn gotrabandhus.asgi:app``"""
from gotrabandhus.main import create_app

app = create_app()
