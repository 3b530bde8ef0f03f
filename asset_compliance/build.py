#!/usr/bin/env python3
"""
Build orchestrator for the Asset Compliance tracker
Creates the tables and inserts the critical lookup data
"""

from asset_compliance import db
from asset_compliance.logger import get_logger

logger = get_logger("asset_compliance.build")

EQUIPMENT_GROUPS = ['PFD', 'Heights Safety', 'Fire', 'First Aid', 'Racking', 'Other']
EQUIPMENT_SCHEDULES = ['Monthly', 'Quarterly', '6-Monthly', 'Annual', 'Biennial']
PLANT_GROUPS = ['Vehicle', 'Truck', 'Trailer', 'Vessel', 'Petrol Plant']


def _critical_lookups():
    from asset_compliance.data.equipment import EquipmentGroup, EquipmentSchedule
    from asset_compliance.data.plant import PlantGroup

    return [
        (EquipmentGroup, EQUIPMENT_GROUPS),
        (EquipmentSchedule, EQUIPMENT_SCHEDULES),
        (PlantGroup, PLANT_GROUPS),
    ]


def verify_critical_data():
    """
    Verify that every critical lookup row is present

    Returns:
        bool: True if all critical data is present, False otherwise
    """
    for model, names in _critical_lookups():
        present = {row.name for row in model.query.all()}
        missing = [name for name in names if name not in present]
        if missing:
            logger.warning(f"{model.__name__} rows missing: {', '.join(missing)}")
            return False
    return True


def insert_critical_data():
    """Insert missing groups and schedules; existing rows are left untouched"""
    inserted = 0
    for model, names in _critical_lookups():
        present = {row.name for row in model.query.all()}
        for name in names:
            if name not in present:
                db.session.add(model(name=name))
                inserted += 1

    db.session.commit()
    if inserted:
        logger.info(f"Inserted {inserted} critical lookup row(s)")
    return inserted


def build_database(insert_data=True):
    """
    Create all tables and (optionally) insert critical data

    Args:
        insert_data: Insert missing groups and schedules after creating tables
    """
    logger.info("Creating database tables")
    db.create_all()

    if insert_data and not verify_critical_data():
        insert_critical_data()

    logger.info("Database build complete")
