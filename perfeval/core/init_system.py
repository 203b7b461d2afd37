import logging
from decimal import Decimal

from perfeval.core.config import settings
from perfeval.database import SessionLocal
from perfeval.models.criteria import Criteria
from perfeval.models.criteria_category import CriteriaCategory
from perfeval.models.department import Department
from perfeval.models.job_role import JobRole

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS = ["Engineering", "Quality Assurance", "Human Resources"]

DEFAULT_JOB_ROLES = ["Developer", "QA Specialist", "Team Lead"]

# Category -> (weight, criteria). Weights total 100.
DEFAULT_CATEGORIES = {
    "Technical Skills": (Decimal("40.00"), ["Code quality", "Problem solving"]),
    "Communication": (Decimal("20.00"), ["Written communication", "Collaboration"]),
    "Delivery": (Decimal("25.00"), ["Reliability", "Estimation accuracy"]),
    "Growth": (Decimal("15.00"), ["Learning", "Mentoring"]),
}


def init_system_data():
    """
    Checks if the system needs initialization.
    On an empty database, creates default departments, job roles and a
    criteria category set whose weights total 100%.
    """
    if not settings.seed_default_data:
        logger.info("System initialization skipped (SEED_DEFAULT_DATA disabled)")
        return

    db = SessionLocal()
    try:
        if db.query(Department).count() == 0:
            for name in DEFAULT_DEPARTMENTS:
                db.add(Department(name=name))
            logger.info(f"✓ Created {len(DEFAULT_DEPARTMENTS)} default departments")

        if db.query(JobRole).count() == 0:
            for name in DEFAULT_JOB_ROLES:
                db.add(JobRole(name=name))
            logger.info(f"✓ Created {len(DEFAULT_JOB_ROLES)} default job roles")

        category_count = db.query(CriteriaCategory).count()
        if category_count == 0:
            for name, (weight, criteria_names) in DEFAULT_CATEGORIES.items():
                category = CriteriaCategory(name=name, weight=weight, is_active=True)
                category.criteria = [Criteria(name=c, is_active=True) for c in criteria_names]
                db.add(category)
            logger.info(f"✓ Created {len(DEFAULT_CATEGORIES)} default criteria categories")
        else:
            logger.info(f"System initialization check: {category_count} criteria categories found.")

        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
    finally:
        db.close()
