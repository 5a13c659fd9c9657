# tradecraft/seed.py
from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy import select

from core.database import AsyncSessionLocal
from tradecraft.models import TradecraftDocRow

logger = logging.getLogger(__name__)


def _q(qid: str, store_as: str, question: str, replies: List[str]) -> Dict[str, Any]:
    return {"id": qid, "storeAs": store_as, "question": question, "quickReplies": replies}


def _item(category: str, name: str, terms: List[str], qty: float, unit: str = "ea", required: bool = True) -> Dict[str, Any]:
    return {
        "category": category,
        "name": name,
        "searchTerms": terms,
        "defaultQty": qty,
        "unit": unit,
        "required": required,
    }


BUILTIN_TRADECRAFT: List[Dict[str, Any]] = [
    {
        "trade": "electrical",
        "job_type": "panel_upgrade",
        "title": "Panel Upgrade",
        "content": "# Panel Upgrade (100A -> 200A)\n\nReplace the main service panel, breakers and grounding.",
        "scoping_questions": [
            _q("current_service", "currentService", "What's the existing service size?", ["60A", "100A", "150A", "Not sure"]),
            _q("panel_location", "panelLocation", "Where is the panel located?", ["Garage", "Basement", "Exterior wall", "Utility room"]),
            _q("meter_combo", "meterCombo", "Is the meter combined with the main panel?", ["Yes, meter/main combo", "No, separate meter", "Not sure"]),
        ],
        "materials_checklist": {
            "items": [
                _item("panel", "200A main breaker panel", ["200 amp panel", "main breaker load center"], 1),
                _item("breakers", "Branch breakers", ["single pole breaker", "double pole breaker"], 12),
                _item("grounding", "Ground rods and clamps", ["ground rod", "ground rod clamp"], 2),
                _item("wire", "Service entrance cable", ["4/0 SER cable", "service entrance wire"], 10, "ft"),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "ev_charger",
        "title": "EV Charger Installation",
        "content": "# EV Charger Installation (Level 2)\n\n40-50A 240V circuit for a wall-mounted charger.",
        "scoping_questions": [
            _q("charger_type", "chargerType", "What type of EV charger are we installing?",
               ["Tesla Wall Connector", "ChargePoint", "Other Level 2", "Customer providing"]),
            _q("panel_distance", "panelDistance", "How far is the panel from where the charger will be mounted?",
               ["Under 25 ft", "25-50 ft", "50-100 ft", "Over 100 ft"]),
            _q("panel_capacity", "panelCapacity", "Does the panel have room for a 50A breaker?",
               ["Yes, spaces available", "No, panel is full", "Not sure"]),
            _q("mounting_location", "mountingLocation", "Where will the charger be mounted?",
               ["Garage wall", "Exterior wall", "Pedestal/post", "Inside near panel"]),
        ],
        "materials_checklist": {
            "items": [
                _item("breaker", "50A 2-pole breaker", ["50 amp breaker 2 pole", "50A double pole"], 1),
                _item("wire", "6/3 NM-B cable", ["6/3 romex", "6-3 wire NM"], 25, "ft"),
                _item("outlet", "NEMA 14-50 outlet", ["14-50 outlet", "range outlet 4 prong"], 1, required=False),
                _item("box", "Weatherproof box", ["weatherproof box", "outdoor outlet box"], 1, required=False),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "recessed_lighting",
        "title": "Recessed Lighting",
        "content": "# Recessed Lighting Installation\n\nCut in cans, run wire, tie into a switch.",
        "scoping_questions": [
            _q("light_count", "lightCount", "How many recessed lights are we installing?",
               ["4 lights", "6 lights", "8 lights", "10+ lights"]),
            _q("ceiling_type", "ceilingType", "What type of ceiling?",
               ["Drywall (standard)", "Drywall (insulated above)", "Drop/suspended", "Vaulted/cathedral"]),
            _q("existing_switch", "existingSwitch", "Is there an existing switch we can tie into?",
               ["Yes, existing switch", "No, need new switch", "Want dimmer"]),
        ],
        "materials_checklist": {
            "items": [
                _item("lights", "LED wafer lights", ["6 inch led wafer light", "recessed led light"], 6),
                _item("wire", "14/2 NM-B cable", ["14/2 romex", "14-2 wire"], 50, "ft"),
                _item("switch", "Dimmer switch", ["led dimmer switch", "single pole dimmer"], 1, required=False),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "outlet_circuit",
        "title": "New Outlet / Circuit",
        "content": "# New Outlet or Circuit\n\nAdd receptacles on a new or extended circuit.",
        "scoping_questions": [
            _q("outlet_purpose", "outletPurpose", "What will this outlet be used for?",
               ["General use (15A)", "Kitchen/bathroom (20A GFCI)", "Dedicated appliance", "Outdoor"]),
            _q("new_or_extend", "newOrExtend", "New circuit from panel, or extend existing circuit?",
               ["New circuit", "Extend nearby circuit", "Not sure"]),
            _q("outlet_count", "outletCount", "How many outlets are we adding?",
               ["Just 1", "2-3 outlets", "4+ outlets"]),
        ],
        "materials_checklist": {
            "items": [
                _item("receptacle", "Receptacle", ["20a receptacle", "gfci outlet"], 1),
                _item("box", "Old work box", ["old work box", "remodel box"], 1),
                _item("wire", "12/2 NM-B cable", ["12/2 romex", "12-2 wire"], 25, "ft"),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "ceiling_fan",
        "title": "Ceiling Fan Installation",
        "content": "# Ceiling Fan Installation\n\nHang a fan on a fan-rated box and wire the controls.",
        "scoping_questions": [
            _q("existing_or_new", "existingOrNew", "Replacing an existing fixture or new location?",
               ["Replacing light fixture", "Replacing old fan", "New location"]),
            _q("box_rated", "boxRated", "Is the existing ceiling box fan-rated?",
               ["Yes, fan-rated", "No/not sure", "New installation"]),
            _q("ceiling_height", "ceilingHeight", "What is the ceiling height?",
               ["Standard 8 ft", "9-10 ft", "Vaulted/cathedral"]),
        ],
        "materials_checklist": {
            "items": [
                _item("fan_box", "Fan-rated box", ["fan rated box", "ceiling fan box"], 1),
                _item("brace", "Fan brace", ["fan brace", "ceiling fan bracket"], 1, required=False),
                _item("wire", "14/2 NM-B cable", ["14/2 romex", "14-2 wire"], 25, "ft", required=False),
                _item("switch", "Fan speed control", ["ceiling fan switch", "fan speed control"], 1, required=False),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "smoke_detectors",
        "title": "Smoke Detector Installation",
        "content": "# Smoke Detector Installation\n\nHardwired, interconnected smoke and CO detectors.",
        "scoping_questions": [
            _q("install_type", "installType", "New installation or replacing existing?",
               ["Replacing old hardwired", "Adding detectors", "Upgrading to smoke/CO combo"]),
            _q("detector_count", "detectorCount", "How many detectors are needed?",
               ["2-3 detectors", "4-6 detectors", "7+ detectors"]),
            _q("interconnected", "interconnected", "Are the existing detectors interconnected?",
               ["Yes, wired together", "No, independent", "Battery only"]),
            _q("attic_access", "atticAccess", "Attic or crawl space access?",
               ["Good attic access", "Limited access", "No access (fishing required)"]),
        ],
        "materials_checklist": {
            "items": [
                _item("detectors", "Hardwired smoke detector", ["hardwired smoke detector", "smoke alarm 120v"], 4),
                _item("combo", "Smoke/CO combo detector", ["smoke co combo detector", "carbon monoxide smoke alarm"], 2, required=False),
                _item("wire", "14/3 NM-B cable", ["14/3 romex", "14-3 wire"], 50, "ft"),
                _item("box", "Old work box", ["old work box", "remodel box"], 4, required=False),
            ]
        },
    },
    {
        "trade": "electrical",
        "job_type": "range_dryer_circuit",
        "title": "240V Range or Dryer Circuit",
        "content": "# 240V Range or Dryer Circuit\n\nDedicated 50A range or 30A dryer circuit from the panel.",
        "scoping_questions": [
            _q("appliance", "appliance", "Range or dryer?",
               ["Electric range (50A)", "Electric dryer (30A)", "Both circuits"]),
            _q("panel_distance", "panelDistance", "Distance from the panel?",
               ["Under 25 ft", "25-50 ft", "Different floor"]),
            _q("outlet_type", "outletType", "Outlet type needed?",
               ["4-prong", "3-prong", "Hardwired"]),
            _q("cable_path", "cablePath", "Is there a clear path for the cable?",
               ["Open basement/crawl below", "Attic access above", "Finished walls (fishing required)"]),
        ],
        "materials_checklist": {
            "items": [
                _item("breaker", "2-pole breaker", ["50 amp breaker 2 pole", "30 amp breaker 2 pole"], 1),
                _item("wire", "6/3 or 10/3 NM-B cable", ["6/3 romex", "10/3 romex"], 30, "ft"),
                _item("outlet", "NEMA 14-50 / 14-30 outlet", ["14-50 outlet", "14-30 dryer outlet"], 1, required=False),
                _item("box", "4 in. square box", ["4 inch square box", "outlet box 4 square"], 1, required=False),
            ]
        },
    },
]


async def seed_tradecraft_docs(session_factory=AsyncSessionLocal, docs=None) -> int:
    """Insert built-in docs whose (trade, job_type, version) is not present yet. Returns rows added."""
    docs = BUILTIN_TRADECRAFT if docs is None else docs
    added = 0
    async with session_factory() as session:
        for doc in docs:
            exists = (
                await session.execute(
                    select(TradecraftDocRow.id).where(
                        TradecraftDocRow.trade == doc["trade"],
                        TradecraftDocRow.job_type == doc["job_type"],
                        TradecraftDocRow.version == doc.get("version", 1),
                    )
                )
            ).first()
            if exists:
                continue
            session.add(TradecraftDocRow(**doc))
            added += 1
        await session.commit()

    if added:
        logger.info("[tradecraft] seeded %d docs", added)
    return added
