"""
Deterministic demo data for local development.

Loaded into the in-memory store at construction and, on request, into a
SQL database by ``scripts/init_db.py --seed``.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from jamakers.db import DbClient, utcnow

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"id": "demo-brand", "email": "brand@jamakers.test", "first_name": "Tanya", "last_name": "Morgan", "role": "brand"},
    {"id": "demo-brand-2", "email": "island@jamakers.test", "first_name": "Marcus", "last_name": "Reid", "role": "brand"},
    {"id": "demo-manufacturer", "email": "factory@jamakers.test", "first_name": "Devon", "last_name": "Clarke", "role": "manufacturer"},
    {"id": "demo-manufacturer-2", "email": "spice@jamakers.test", "first_name": "Simone", "last_name": "Grant", "role": "manufacturer"},
    {"id": "demo-manufacturer-3", "email": "pack@jamakers.test", "first_name": "Andre", "last_name": "Williams", "role": "manufacturer"},
    {"id": "demo-lender", "email": "loans@jamakers.test", "first_name": "Karen", "last_name": "Brown", "role": "financial_institution"},
    {"id": "demo-lender-2", "email": "credit@jamakers.test", "first_name": "Paul", "last_name": "Campbell", "role": "financial_institution"},
    {"id": "demo-creator", "email": "creator@jamakers.test", "first_name": "Shanice", "last_name": "Lewis", "role": "creator"},
    {"id": "demo-designer", "email": "designer@jamakers.test", "first_name": "Omar", "last_name": "Thompson", "role": "designer"},
    {"id": "demo-creator-2", "email": "stories@jamakers.test", "first_name": "Ricardo", "last_name": "Bailey", "role": "creator"},
    {"id": "demo-designer-2", "email": "identity@jamakers.test", "first_name": "Kerry-Ann", "last_name": "Walters", "role": "designer"},
    {"id": "demo-admin", "email": "admin@jamakers.test", "first_name": "Admin", "role": "admin"},
]

MANUFACTURERS = [
    {
        "id": "mfr-blue-mountain",
        "user_id": "demo-manufacturer",
        "business_name": "Blue Mountain Foods Ltd",
        "description": "Sauces, jerk seasonings and bottled beverages for export.",
        "location": "Kingston",
        "daily_capacity": 5000,
        "monthly_capacity": 110000,
        "current_utilization": 0.62,
        "min_order_quantity": 500,
        "production_lines": 3,
        "workforce_size": 48,
        "shifts_per_day": 2,
        "industries": ["food", "beverage"],
        "capabilities": ["bottling", "sauce production", "private label"],
        "verification_status": "approved",
    },
    {
        "id": "mfr-st-bess-spice",
        "user_id": "demo-manufacturer-2",
        "business_name": "St. Bess Spice Works",
        "description": "Dried spices, pimento and ginger processing.",
        "location": "Santa Cruz, St. Elizabeth",
        "daily_capacity": 1200,
        "min_order_quantity": 200,
        "production_lines": 1,
        "workforce_size": 15,
        "industries": ["food", "agro-processing"],
        "capabilities": ["drying", "grinding", "packaging"],
    },
    {
        "id": "mfr-montego-pack",
        "user_id": "demo-manufacturer-3",
        "business_name": "Montego Pack & Print",
        "description": "Labels, cartons and flexible packaging.",
        "location": "Montego Bay",
        "daily_capacity": 20000,
        "industries": ["packaging"],
        "capabilities": ["label printing", "carton converting"],
        "verification_status": "approved",
    },
]

BRANDS = [
    {
        "id": "brand-yaad-flavours",
        "user_id": "demo-brand",
        "company_name": "Yaad Flavours",
        "description": "Caribbean condiments for the diaspora market.",
        "industry": "food",
        "product_categories": ["sauces", "seasonings"],
        "company_size": "11-50",
        "preferred_locations": ["Kingston", "St. Catherine"],
    },
    {
        "id": "brand-island-glow",
        "user_id": "demo-brand-2",
        "company_name": "Island Glow Naturals",
        "description": "Coconut oil and castor oil skincare.",
        "industry": "cosmetics",
        "product_categories": ["skincare"],
        "company_size": "1-10",
    },
]

RFQS = [
    {
        "id": "rfq-jerk-sauce",
        "brand_id": "brand-yaad-flavours",
        "title": "Private label jerk sauce, 10oz bottles",
        "description": "Looking for a HACCP certified co-packer for a mild jerk sauce.",
        "category": "food",
        "budget": 15000,
        "quantity": 10000,
        "timeline": "8 weeks",
        "requirements": {"certifications": ["haccp"], "packaging": "glass bottle", "labeling": "FDA compliant"},
    },
    {
        "id": "rfq-coconut-oil",
        "brand_id": "brand-island-glow",
        "title": "Cold-pressed virgin coconut oil supply",
        "description": "Monthly supply of cold-pressed oil in 20L drums.",
        "category": "cosmetics",
        "budget": 8000,
        "quantity": 400,
        "timeline": "ongoing",
        "requirements": {"certifications": ["organic"], "packaging": "20L drum"},
    },
]

RAW_MATERIALS = [
    {"id": "rm-scotch-bonnet", "name": "Scotch bonnet pepper", "category": "produce", "unit_of_measure": "kg", "average_price": 65000, "minimum_order_quantity": 50},
    {"id": "rm-pimento", "name": "Pimento (allspice) berries", "category": "spices", "unit_of_measure": "kg", "average_price": 120000, "minimum_order_quantity": 25},
    {"id": "rm-glass-bottle", "name": "Glass woozy bottle 10oz", "category": "packaging", "unit_of_measure": "unit", "average_price": 9500, "minimum_order_quantity": 1000},
    {"id": "rm-coconut", "name": "Dry coconut", "category": "produce", "unit_of_measure": "unit", "average_price": 15000, "minimum_order_quantity": 500},
]

SUPPLIERS = [
    {"id": "sup-pepper-bm", "raw_material_id": "rm-scotch-bonnet", "manufacturer_id": "mfr-blue-mountain", "price_per_unit": 60000, "lead_time_days": 7, "is_verified": True},
    {"id": "sup-pimento-sb", "raw_material_id": "rm-pimento", "manufacturer_id": "mfr-st-bess-spice", "price_per_unit": 110000, "lead_time_days": 10},
    {"id": "sup-bottle-mp", "raw_material_id": "rm-glass-bottle", "manufacturer_id": "mfr-montego-pack", "price_per_unit": 9000, "lead_time_days": 21, "is_verified": True},
]

LENDERS = [
    {
        "id": "fi-jn-business",
        "user_id": "demo-lender",
        "institution_name": "Island Business Bank",
        "institution_type": "commercial bank",
        "description": "Working capital and equipment loans for manufacturers.",
        "location": "Kingston",
        "min_loan_amount": 500000,
        "max_loan_amount": 50000000,
    },
    {
        "id": "fi-dbj-credit",
        "user_id": "demo-lender-2",
        "institution_name": "Parish Credit Union",
        "institution_type": "credit union",
        "description": "Micro and small enterprise lending.",
        "location": "Mandeville",
        "min_loan_amount": 100000,
        "max_loan_amount": 5000000,
    },
]

LOAN_PRODUCTS = [
    {
        "id": "lp-equipment",
        "lender_id": "fi-jn-business",
        "product_name": "Equipment Finance",
        "loan_type": "equipment",
        "min_amount": 1000000,
        "max_amount": 50000000,
        "interest_rate_min": 8.5,
        "interest_rate_max": 12.0,
        "term_months_min": 12,
        "term_months_max": 84,
        "requirements": ["2 years audited financials", "equipment quotation"],
    },
    {
        "id": "lp-working-capital",
        "lender_id": "fi-jn-business",
        "product_name": "Working Capital Line",
        "loan_type": "working capital",
        "min_amount": 500000,
        "max_amount": 10000000,
        "interest_rate_min": 10.0,
        "interest_rate_max": 14.5,
        "term_months_min": 6,
        "term_months_max": 36,
    },
    {
        "id": "lp-micro",
        "lender_id": "fi-dbj-credit",
        "product_name": "MSME Starter Loan",
        "loan_type": "micro",
        "min_amount": 100000,
        "max_amount": 1500000,
        "interest_rate_min": 12.0,
        "interest_rate_max": 18.0,
        "term_months_min": 6,
        "term_months_max": 24,
    },
]

COURSES = [
    {
        "course": {
            "id": "course-haccp",
            "title": "HACCP Fundamentals for Food Processors",
            "category": "food safety",
            "description": "Build and maintain a hazard analysis plan.",
            "duration": 180,
            "instructor_name": "Dr. Nadine Francis",
        },
        "modules": [
            {
                "id": "module-haccp-1",
                "title": "Hazard analysis",
                "lessons": [
                    {"id": "lesson-haccp-1", "title": "Biological, chemical and physical hazards", "duration": 20},
                    {"id": "lesson-haccp-2", "title": "Identifying critical control points", "duration": 25},
                ],
            },
            {
                "id": "module-haccp-2",
                "title": "Monitoring and records",
                "lessons": [
                    {"id": "lesson-haccp-3", "title": "Monitoring procedures", "duration": 20},
                ],
            },
        ],
    },
    {
        "course": {
            "id": "course-export",
            "title": "Exporting from Jamaica",
            "category": "trade",
            "description": "Documentation, customs and labeling for export markets.",
            "duration": 120,
            "instructor_name": "Michael Spence",
        },
        "modules": [
            {
                "id": "module-export-1",
                "title": "Export documentation",
                "lessons": [
                    {"id": "lesson-export-1", "title": "Certificates of origin", "duration": 15},
                    {"id": "lesson-export-2", "title": "FDA food facility registration", "duration": 20},
                ],
            },
        ],
    },
]

RESOURCES = [
    {"id": "res-haccp-template", "title": "HACCP plan template", "category": "food safety", "file_type": "pdf", "tags": ["haccp", "template"]},
    {"id": "res-export-checklist", "title": "Export readiness checklist", "category": "trade", "file_type": "pdf", "tags": ["export"]},
    {"id": "res-costing-sheet", "title": "Product costing worksheet", "category": "finance", "file_type": "xlsx", "tags": ["costing"]},
]

CREATORS = [
    {
        "id": "creator-shanice",
        "user_id": "demo-creator",
        "display_name": "Shanice Lewis",
        "tagline": "Food photography and short-form video",
        "specialties": ["food photography", "product video"],
        "content_types": ["photo", "reels"],
        "hourly_rate": 45,
        "location": "Kingston",
        "social_links": {"instagram": "https://instagram.com/shanicecreates"},
    },
    {
        "id": "creator-ricardo",
        "user_id": "demo-creator-2",
        "display_name": "Ricardo Bailey",
        "tagline": "Brand storytelling for Caribbean makers",
        "specialties": ["copywriting"],
        "available_for_hire": False,
    },
]

DESIGNERS = [
    {
        "id": "designer-omar",
        "user_id": "demo-designer",
        "display_name": "Omar Thompson",
        "tagline": "Packaging and label design",
        "design_specialties": ["packaging", "labels"],
        "software_proficiency": ["Illustrator", "Figma"],
        "hourly_rate": 40,
        "location": "Ocho Rios",
    },
    {
        "id": "designer-kerry",
        "user_id": "demo-designer-2",
        "display_name": "Kerry-Ann Walters",
        "tagline": "Brand identity systems",
        "design_specialties": ["branding"],
        "available_for_hire": False,
    },
]


def seed_demo_data(db: DbClient) -> None:
    """Populate ``db`` with the demo fixtures. Ids are fixed, so run it once."""
    for user in DEMO_USERS:
        db.upsert_user(user)
    for manufacturer in MANUFACTURERS:
        db.create_manufacturer(manufacturer)
    for brand in BRANDS:
        db.create_brand(brand)

    expires_at = utcnow() + timedelta(days=30)
    for rfq in RFQS:
        db.create_rfq({**rfq, "expires_at": expires_at})

    for material in RAW_MATERIALS:
        db.create_raw_material(material)
    for supplier in SUPPLIERS:
        db.create_raw_material_supplier(supplier)

    for lender in LENDERS:
        db.create_financial_institution(lender)
    for product in LOAN_PRODUCTS:
        db.create_loan_product(product)

    for entry in COURSES:
        course = db.create_course(entry["course"])
        for module_index, module in enumerate(entry["modules"]):
            db.create_course_module(
                {
                    "id": module["id"],
                    "course_id": course.id,
                    "title": module["title"],
                    "order_index": module_index,
                }
            )
            for lesson_index, lesson in enumerate(module["lessons"]):
                db.create_course_lesson(
                    {**lesson, "module_id": module["id"], "order_index": lesson_index}
                )

    for resource in RESOURCES:
        db.create_resource(resource)
    for creator in CREATORS:
        db.create_creator(creator)
    for designer in DESIGNERS:
        db.create_designer(designer)

    logger.info("Seeded demo data into %s store", getattr(db, "backend_name", "unknown"))
