from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import create_document, get_db, get_documents, serialize_doc
from errors import envelope
from logger import logger
from schemas import Feature
from security import require_admin

router = APIRouter(prefix="/api/common/feature", tags=["common"])


@router.post("", dependencies=[Depends(require_admin)])
def add_feature_image(payload: Feature, db: Database = Depends(get_db)):
    doc = create_document(db, "feature", payload)
    logger.info("FEATURE_IMAGE_ADD_SUCCESS", {"featureId": str(doc["_id"])})
    return envelope(serialize_doc(doc), status_code=201)


@router.get("")
def get_feature_images(db: Database = Depends(get_db)):
    images = get_documents(db, "feature")
    logger.info("FEATURE_IMAGE_FETCH_SUCCESS", {"count": len(images)})
    return envelope([serialize_doc(i) for i in images])
