"""
Seed the learning path catalog and the level threshold table.

Purpose:
- Fill user_levels (cumulative XP per level)
- Create a starter set of fields, modules, sub-modules and quest templates
- SAFE to run multiple times (rows are matched by name/title, never duplicated)

IMPORTANT:
- This script does NOT touch any user progress
- Run manually (python scripts/seed_learning_path.py)
"""
import sys
import os

# Add the parent directory to the path so we can import mindmuse modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sqlalchemy.orm import Session  # noqa: E402

from mindmuse.db.base import Base, SessionLocal, engine  # noqa: E402
from mindmuse.learn.models import Field, Module, QuestTemplate, SubModule  # noqa: E402
from mindmuse.progress.models import UserLevel  # noqa: E402

# level -> cumulative XP required to reach it
LEVEL_THRESHOLDS = {
    1: 0,
    2: 100,
    3: 250,
    4: 450,
    5: 700,
    6: 1000,
    7: 1400,
    8: 1900,
    9: 2500,
    10: 3200,
}

CATALOG = [
    {
        "name": "Creative Writing",
        "description": "Find your voice through stories, poems and daily pages.",
        "unlock_global_level": 1,
        "modules": [
            {
                "title": "Foundations",
                "unlock_field_level": 1,
                "sub_modules": [
                    ("Morning Pages", 1, [
                        ("Write three pages", "Fill three pages before checking your phone.", True, 10),
                        ("Name the feeling", "Describe one emotion without naming it.", True, 10),
                        ("Read it aloud", "Read yesterday's pages out loud and mark one line you like.", False, 5),
                    ]),
                    ("Sensory Detail", 2, [
                        ("Five senses walk", "Take a short walk and note one detail per sense.", True, 15),
                        ("Rewrite with smell", "Rewrite a paragraph adding a smell that changes its mood.", True, 15),
                    ]),
                ],
            },
            {
                "title": "Story Craft",
                "unlock_field_level": 3,
                "sub_modules": [
                    ("Character Sketch", 3, [
                        ("Someone you saw today", "Sketch a stranger in 150 words.", True, 15),
                        ("Give them a secret", "Write the one thing your character never says.", True, 20),
                    ]),
                    ("Scene Tension", 4, [
                        ("Argue in whispers", "Write a two-person scene where neither says what they mean.", True, 20),
                    ]),
                ],
            },
        ],
    },
    {
        "name": "Mindfulness",
        "description": "Build attention and calm with small daily practices.",
        "unlock_global_level": 1,
        "modules": [
            {
                "title": "Breath",
                "unlock_field_level": 1,
                "sub_modules": [
                    ("Box Breathing", 1, [
                        ("Four rounds", "Do four rounds of box breathing and journal one sentence after.", True, 10),
                    ]),
                ],
            },
        ],
    },
    {
        "name": "Visual Art",
        "description": "Sketching, colour and composition for non-artists.",
        "unlock_global_level": 3,
        "modules": [
            {
                "title": "Seeing",
                "unlock_field_level": 1,
                "sub_modules": [
                    ("Blind Contour", 1, [
                        ("Draw your hand", "Draw your hand without looking at the paper.", True, 10),
                    ]),
                ],
            },
        ],
    },
]

SIDE_QUESTS = [
    ("Gratitude trio", "List three small things that went right today.", "journal", 5),
    ("Idea jar", "Write down five ideas in five minutes, no judging.", "creative", 10),
    ("Unplugged hour", "Spend one hour offline and reflect on what you noticed.", "mindset", 15),
]


def _difficulty(xp: int) -> str:
    if xp > 15:
        return "hard"
    if xp > 10:
        return "medium"
    return "easy"


def _get_or_create(db: Session, model, defaults: dict, **lookup):
    row = db.query(model).filter_by(**lookup).first()
    if row:
        return row, False
    row = model(**lookup, **defaults)
    db.add(row)
    db.flush()
    return row, True


def seed_learning_path():
    db: Session = SessionLocal()
    created = 0
    skipped = 0

    try:
        for level, xp_required in LEVEL_THRESHOLDS.items():
            row = db.get(UserLevel, level)
            if row:
                row.xp_required = xp_required
                skipped += 1
            else:
                db.add(UserLevel(level=level, xp_required=xp_required))
                created += 1

        for f in CATALOG:
            field, new = _get_or_create(
                db, Field,
                {"description": f["description"], "unlock_global_level": f["unlock_global_level"]},
                name=f["name"],
            )
            created += new
            skipped += not new

            for m in f["modules"]:
                module, new = _get_or_create(
                    db, Module,
                    {"description": "", "unlock_field_level": m["unlock_field_level"]},
                    field_id=field.id, title=m["title"],
                )
                created += new
                skipped += not new

                for order_index, (title, unlock_level, quests) in enumerate(m["sub_modules"]):
                    sub_module, new = _get_or_create(
                        db, SubModule,
                        {"description": "", "order_index": order_index, "unlock_field_level": unlock_level},
                        module_id=module.id, title=title,
                    )
                    created += new
                    skipped += not new

                    for q_title, q_description, mandatory, xp in quests:
                        _, new = _get_or_create(
                            db, QuestTemplate,
                            {
                                "description": q_description,
                                "difficulty": _difficulty(xp),
                                "type": "challenge",
                                "xp_reward": xp,
                                "is_mandatory": mandatory,
                            },
                            sub_module_id=sub_module.id, title=q_title,
                        )
                        created += new
                        skipped += not new

        for title, description, kind, xp in SIDE_QUESTS:
            _, new = _get_or_create(
                db, QuestTemplate,
                {"description": description, "difficulty": _difficulty(xp), "type": kind,
                 "xp_reward": xp, "is_mandatory": False},
                sub_module_id=None, title=title,
            )
            created += new
            skipped += not new

        db.commit()

        print("✅ Learning path seeding complete")
        print(f"   Created: {created}")
        print(f"   Skipped (already existed): {skipped}")

    except Exception as e:
        db.rollback()
        print("❌ Error while seeding the learning path")
        print(str(e))
        raise
    finally:
        db.close()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    seed_learning_path()
