# web.py
import os

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .errors import CollectionResolutionError, ExtractionError, ProviderError, StoreError
from .service import PdfSearchService


def create_app(service: PdfSearchService) -> FastAPI:
    app = FastAPI(title="PDF semantic search (Chroma)", version=__version__)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True, "collection": service.collection_name}

    @app.get("/search")
    def search(q: str = Query(..., description="Your question"), k: int = Query(5, ge=1, le=100)):
        try:
            results = service.search(q, k)
        except (ProviderError, StoreError) as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {"query": q, "results": [r.model_dump() for r in results]}

    @app.post("/index_file")
    def index_file(path: str):
        if not os.path.isfile(path):
            raise HTTPException(status_code=404, detail=f"not a file: {path}")
        try:
            report = service.index_file(path)
        except ExtractionError as e:
            raise HTTPException(status_code=422, detail=str(e))
        except (ProviderError, CollectionResolutionError, StoreError) as e:
            raise HTTPException(status_code=502, detail=str(e))
        return {"result": report.model_dump(), "records": report.records}

    @app.post("/index_all")
    def index_all(root: str = "data/pdfs"):
        if not os.path.isdir(root):
            raise HTTPException(status_code=404, detail=f"not a directory: {root}")
        return service.index_folder(root).model_dump()

    return app
