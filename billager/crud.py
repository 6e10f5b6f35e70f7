# billager/crud.py
"""CRUD helpers for the `cars` table.

Thin session-level operations; `gateway.TableGateway` owns ids, timestamps and
error translation.
"""
from sqlalchemy.orm import Session
from typing import Dict, Any, List, Optional
from .models import Car

def list_cars(db: Session) -> List[Car]:
    return db.query(Car).all()

def get_car(db: Session, car_id: str) -> Optional[Car]:
    return db.query(Car).filter(Car.id == car_id).first()

def insert_car(db: Session, data: Dict[str, Any]) -> Car:
    obj = Car(**data)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def update_car(db: Session, car_id: str, updates: Dict[str, Any]) -> Optional[Car]:
    obj = get_car(db, car_id)
    if not obj:
        return None
    for k, v in updates.items():
        setattr(obj, k, v)
    db.commit()
    db.refresh(obj)
    return obj

def delete_car(db: Session, car_id: str) -> bool:
    obj = get_car(db, car_id)
    if not obj:
        return False
    db.delete(obj)
    db.commit()
    return True
