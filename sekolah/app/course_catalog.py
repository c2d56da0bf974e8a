"""
Course Catalogue
================
Fixed list of programs shown on the public /courses page, with search,
category filter and sorting.
"""

import copy
from datetime import date
from typing import Any, Dict, List, Optional

from sekolah.app.exceptions import NotFoundError, ValidationError


COURSES: List[Dict[str, Any]] = [
    {
        "id": 1, "title": "Complete Web Development Bootcamp", "category": "Development",
        "instructor": "John Smith", "price": 89, "original_price": 129, "rating": 4.8,
        "reviews": 1250, "image": "/img/courses/1.jpg", "lessons": 45, "duration": "12 hours",
        "level": "Beginner", "badge": "BEST SELLER", "created_at": date(2024, 1, 15),
    },
    {
        "id": 2, "title": "Digital Marketing Masterclass", "category": "Marketing",
        "instructor": "Sarah Johnson", "price": 79, "original_price": 99, "rating": 4.6,
        "reviews": 890, "image": "/img/courses/2.jpg", "lessons": 32, "duration": "8 hours",
        "level": "Intermediate", "badge": None, "created_at": date(2024, 1, 10),
    },
    {
        "id": 3, "title": "UI/UX Design Fundamentals", "category": "Design",
        "instructor": "Mike Wilson", "price": 69, "original_price": None, "rating": 4.9,
        "reviews": 567, "image": "/img/courses/3.jpg", "lessons": 28, "duration": "10 hours",
        "level": "Beginner", "badge": "POPULAR", "created_at": date(2024, 1, 20),
    },
    {
        "id": 4, "title": "Photography for Beginners", "category": "Photography",
        "instructor": "Emma Davis", "price": 59, "original_price": 89, "rating": 4.7,
        "reviews": 432, "image": "/img/courses/4.jpg", "lessons": 24, "duration": "6 hours",
        "level": "Beginner", "badge": None, "created_at": date(2024, 1, 5),
    },
    {
        "id": 5, "title": "Business Strategy & Planning", "category": "Business",
        "instructor": "Robert Brown", "price": 99, "original_price": None, "rating": 4.5,
        "reviews": 678, "image": "/img/courses/5.jpg", "lessons": 38, "duration": "14 hours",
        "level": "Advanced", "badge": None, "created_at": date(2024, 1, 12),
    },
    {
        "id": 6, "title": "Social Media Marketing", "category": "Marketing",
        "instructor": "Lisa Anderson", "price": 49, "original_price": 79, "rating": 4.4,
        "reviews": 345, "image": "/img/courses/6.jpg", "lessons": 20, "duration": "5 hours",
        "level": "Beginner", "badge": None, "created_at": date(2024, 1, 8),
    },
    {
        "id": 7, "title": "JavaScript Advanced Concepts", "category": "Development",
        "instructor": "David Lee", "price": 109, "original_price": None, "rating": 4.8,
        "reviews": 789, "image": "/img/courses/7.jpg", "lessons": 52, "duration": "18 hours",
        "level": "Advanced", "badge": "NEW", "created_at": date(2024, 1, 25),
    },
    {
        "id": 8, "title": "Graphic Design Essentials", "category": "Design",
        "instructor": "Anna Taylor", "price": 75, "original_price": 95, "rating": 4.6,
        "reviews": 456, "image": "/img/courses/8.jpg", "lessons": 30, "duration": "9 hours",
        "level": "Intermediate", "badge": None, "created_at": date(2024, 1, 18),
    },
]

# sort key, descending
SORT_MODES = {
    "default": (lambda c: c["title"].lower(), False),
    "price-low": (lambda c: c["price"], False),
    "price-high": (lambda c: c["price"], True),
    "rating": (lambda c: c["rating"], True),
    "newest": (lambda c: c["created_at"], True),
    "popular": (lambda c: c["reviews"], True),
}


def categories() -> List[Dict[str, Any]]:
    """Categories present in the catalogue with their course counts"""
    counts: Dict[str, int] = {}
    for course in COURSES:
        counts[course["category"]] = counts.get(course["category"], 0) + 1
    return [{"name": name, "count": counts[name]} for name in sorted(counts)]


def _is_set(value: Optional[str]) -> bool:
    return value is not None and value.strip() != "" and value.strip().lower() != "all"


def list_courses(search: str = None, category: str = None, sort: str = None) -> Dict[str, Any]:
    """
    Filter and order the catalogue.

    search matches title or instructor (case-insensitive substring), category
    is an exact case-insensitive match where "all" means no filter. Without a
    sort the catalogue order is kept; an unknown sort mode is rejected.
    """
    sort_key = None
    if sort is not None and sort.strip():
        sort = sort.strip().lower()
        if sort not in SORT_MODES:
            raise ValidationError(f"Urutan tidak valid: {sort}")
        sort_key = SORT_MODES[sort]

    courses = COURSES
    if search and search.strip():
        needle = search.strip().lower()
        courses = [
            c for c in courses
            if needle in c["title"].lower() or needle in c["instructor"].lower()
        ]

    if _is_set(category):
        wanted = category.strip().lower()
        courses = [c for c in courses if c["category"].lower() == wanted]

    if sort_key is not None:
        key, descending = sort_key
        courses = sorted(courses, key=key, reverse=descending)

    return {
        "courses": copy.deepcopy(courses),
        "categories": categories(),
        "filters": {
            "search": (search or "").strip(),
            "category": category.strip() if _is_set(category) else "all",
            "sort": sort or "default",
        },
        "total": len(courses),
    }


def get_course(course_id: int) -> Dict[str, Any]:
    for course in COURSES:
        if course["id"] == course_id:
            detail = copy.deepcopy(course)
            detail["related"] = [
                {"id": c["id"], "title": c["title"], "image": c["image"], "price": c["price"]}
                for c in COURSES
                if c["category"] == course["category"] and c["id"] != course_id
            ]
            return detail
    raise NotFoundError("Program tidak ditemukan")
