# routes/office_routes.py
from typing import List, Optional

from fastapi import APIRouter, Header

from models.schemas import GraphDocument, GraphDocumentCreate
from services.graph_client import GraphClient

router = APIRouter(prefix="/office", tags=["office"])


@router.get("/documents", response_model=List[GraphDocument])
def list_documents(x_graph_token: Optional[str] = Header(None)):
    return GraphClient(x_graph_token).list_word_documents()


@router.post("/documents", response_model=GraphDocument)
def create_document(req: GraphDocumentCreate, x_graph_token: Optional[str] = Header(None)):
    return GraphClient(x_graph_token).create_word_document(req.name)
