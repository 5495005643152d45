from . import health, auth, users, admin, branches, classrooms, classes, students, enrollments, attendance, payments

__all__ = [
    "health",
    "auth",
    "users",
    "admin",
    "branches",
    "classrooms",
    "classes",
    "students",
    "enrollments",
    "attendance",
    "payments",
]
