from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, get_documents, parse_object_id, serialize_doc, utcnow
from errors import NotFound, ValidationError, envelope
from logger import logger
from schemas import Address, AddressUpdate
from security import get_current_user

router = APIRouter(prefix="/api/shop/address", tags=["shop"], dependencies=[Depends(get_current_user)])


@router.post("")
def add_address(payload: Address, db: Database = Depends(get_db)):
    logger.info("ADDRESS_ADD_REQUESTED", {"userId": payload.user_id, "city": payload.city})
    doc = create_document(db, "address", payload)
    logger.info("ADDRESS_ADD_SUCCESS", {"userId": payload.user_id, "addressId": str(doc["_id"])})
    return envelope(serialize_doc(doc), status_code=201)


@router.get("/{user_id}")
def fetch_all_address(user_id: str, db: Database = Depends(get_db)):
    addresses = get_documents(db, "address", {"userId": user_id})
    logger.info("ADDRESS_FETCH_SUCCESS", {"userId": user_id, "count": len(addresses)})
    return envelope([serialize_doc(a) for a in addresses])


@router.put("/{user_id}/{address_id}")
def edit_address(user_id: str, address_id: str, payload: AddressUpdate, db: Database = Depends(get_db)):
    logger.info("ADDRESS_UPDATE_REQUESTED", {"userId": user_id, "addressId": address_id})
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    if any(not v for v in changes.values()):
        logger.warning("ADDRESS_UPDATE_INVALID_DATA", {"userId": user_id, "addressId": address_id})
        raise ValidationError()
    changes["updatedAt"] = utcnow()

    address = db["address"].find_one_and_update(
        {"_id": parse_object_id(address_id, "address id"), "userId": user_id},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not address:
        logger.warning("ADDRESS_UPDATE_NOT_FOUND", {"userId": user_id, "addressId": address_id})
        raise NotFound("Address not found")

    logger.info("ADDRESS_UPDATE_SUCCESS", {"userId": user_id, "addressId": address_id})
    return envelope(serialize_doc(address))


@router.delete("/{user_id}/{address_id}")
def delete_address(user_id: str, address_id: str, db: Database = Depends(get_db)):
    logger.info("ADDRESS_DELETE_REQUESTED", {"userId": user_id, "addressId": address_id})
    address = db["address"].find_one_and_delete(
        {"_id": parse_object_id(address_id, "address id"), "userId": user_id}
    )
    if not address:
        logger.warning("ADDRESS_DELETE_NOT_FOUND", {"userId": user_id, "addressId": address_id})
        raise NotFound("Address not found")

    logger.info("ADDRESS_DELETE_SUCCESS", {"userId": user_id, "addressId": address_id})
    return envelope(message="Address deleted successfully")
