from uuid import uuid4

from sqlalchemy import select

from tuition_center.models import ClassModel, Enrollment, EnrollmentStatus, UserRole

from .factories import (
    PASSWORD,
    auth_headers,
    days_ahead,
    make_branch,
    make_class,
    make_enrollment,
    make_student,
    make_user,
)


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "OK"
    assert "X-Process-Time" in response.headers


async def test_register_login_and_me(client):
    payload = {
        "firstName": "Alex",
        "lastName": "Tan",
        "email": "Alex.Tan@Example.com",
        "phone": "91234567",
        "password": "password123",
    }
    registered = await client.post("/api/auth/register", json=payload)
    assert registered.status_code == 201
    assert registered.json()["user"]["email"] == "alex.tan@example.com"
    assert registered.json()["user"]["role"] == "parent"

    login = await client.post("/api/auth/login", json={"email": "alex.tan@example.com", "password": "password123"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["first_name"] == "Alex"


async def test_duplicate_email_and_wrong_password(client, db):
    user = await make_user(db, email="taken@example.com")

    duplicate = await client.post("/api/auth/register", json={
        "firstName": "Alex", "lastName": "Tan", "email": user.email, "password": "password123",
    })
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "An account with this email already exists"}

    wrong = await client.post("/api/auth/login", json={"email": user.email, "password": "not-" + PASSWORD})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid credentials"}


async def test_invalid_phone_is_a_400(client):
    response = await client.post("/api/auth/register", json={
        "firstName": "Alex", "lastName": "Tan", "email": "alex@example.com", "phone": "123", "password": "password123",
    })
    assert response.status_code == 400
    assert response.json() == {"error": "Phone number must be exactly 8 digits if provided"}


async def test_role_checks(client, db):
    parent = await make_user(db)

    anonymous = await client.get("/api/admin/staff")
    assert anonymous.status_code == 401

    forbidden = await client.get("/api/admin/staff", headers=auth_headers(parent))
    assert forbidden.status_code == 403
    assert forbidden.json() == {"error": "admin access required"}

    garbage = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert garbage.status_code == 401


async def test_assign_tutor_rejects_overlap(client, db):
    admin = await make_user(db, role=UserRole.ADMIN)
    tutor = await make_user(db, role=UserRole.STAFF)
    branch = await make_branch(db, name="Main Branch")
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)
    candidate = await make_class(db, branch, days_ahead(5, 10, 30), subject="Science")

    response = await client.put(
        f"/api/admin/classes/{candidate.id}/assign-tutor",
        json={"tutorId": str(tutor.id)},
        headers=auth_headers(admin),
    )

    assert response.status_code == 409
    assert response.json()["error"] == (
        "You already have 1 class scheduled at the same time:\n\n"
        '• "Math" (Primary 5) from 10:00 AM to 11:00 AM at Main Branch'
    )
    tutor_id = await db.scalar(select(ClassModel.tutor_id).where(ClassModel.id == candidate.id))
    assert tutor_id is None


async def test_assign_tutor_and_preview(client, db):
    admin = await make_user(db, role=UserRole.ADMIN)
    tutor = await make_user(db, role=UserRole.STAFF, first_name="Morgan", last_name="Lee")
    main = await make_branch(db)
    east = await make_branch(db, name="East Branch")
    await make_class(db, east, days_ahead(5, 11, 30), tutor=tutor)
    near = await make_class(db, main, days_ahead(5, 10), subject="Math")
    free = await make_class(db, main, days_ahead(5, 14), subject="English")

    preview = await client.post(
        f"/api/classes/{near.id}/conflicts",
        json={"tutorId": str(tutor.id)},
        headers=auth_headers(admin),
    )
    assert preview.status_code == 200
    body = preview.json()
    assert body["has_conflict"] is True
    assert body["direct_conflicts"] == []
    assert [slot["branch_name"] for slot in body["travel_conflicts"]] == ["East Branch"]

    assigned = await client.put(
        f"/api/admin/classes/{free.id}/assign-tutor",
        json={"tutorId": str(tutor.id)},
        headers=auth_headers(admin),
    )
    assert assigned.status_code == 200
    assert assigned.json() == {"message": "Morgan Lee assigned to English class successfully"}

    missing = await client.put(
        f"/api/admin/classes/{uuid4()}/assign-tutor",
        json={"tutorId": str(tutor.id)},
        headers=auth_headers(admin),
    )
    assert missing.status_code == 404


async def test_staff_cannot_create_overlapping_class(client, db):
    tutor = await make_user(db, role=UserRole.STAFF)
    branch = await make_branch(db, name="Main Branch")
    await make_class(db, branch, days_ahead(5, 10), tutor=tutor)

    payload = {
        "subject": "Science",
        "level": "Primary 5",
        "startTime": days_ahead(5, 10, 30).isoformat(),
        "durationMinutes": 60,
        "branchId": str(branch.id),
    }
    clash = await client.post("/api/classes", json=payload, headers=auth_headers(tutor))
    assert clash.status_code == 409
    assert clash.json()["error"].startswith("You already have 1 class scheduled at the same time:")

    payload["startTime"] = days_ahead(5, 13).isoformat()
    created = await client.post("/api/classes", json=payload, headers=auth_headers(tutor))
    assert created.status_code == 201
    assert created.json()["class"]["tutor_id"] == str(tutor.id)


async def test_enroll_and_grade_change_over_http(client, db):
    parent = await make_user(db)
    branch = await make_branch(db)
    student = await make_student(db, parent, grade="Primary 5")
    math = await make_class(db, branch, days_ahead(3), subject="Math", level="Primary 5")
    science = await make_class(db, branch, days_ahead(4), subject="Science", level="Primary 5")
    await make_enrollment(db, student, science)

    enrolled = await client.post(
        "/api/enrollments",
        json={"studentId": str(student.id), "classId": str(math.id)},
        headers=auth_headers(parent),
    )
    assert enrolled.status_code == 201
    assert enrolled.json()["enrollment"]["status"] == "enrolled"

    updated = await client.put(
        f"/api/students/{student.id}",
        json={"grade": "Primary 6"},
        headers=auth_headers(parent),
    )
    assert updated.status_code == 200
    body = updated.json()
    assert body["student"]["grade"] == "Primary 6"
    assert [item["subject"] for item in body["cancelled_enrollments"]] == ["Math", "Science"]
    assert body["message"].endswith("were cancelled: Math (Primary 5), Science (Primary 5)")

    statuses = (await db.execute(
        select(Enrollment.status).where(Enrollment.student_id == student.id)
    )).scalars().all()
    assert set(statuses) == {EnrollmentStatus.CANCELLED}


async def test_profile_and_staff_listing(client, db):
    admin = await make_user(db, role=UserRole.ADMIN)
    staff = await make_user(db, role=UserRole.STAFF, first_name="Morgan")

    profile = await client.get("/api/users/profile", headers=auth_headers(staff))
    assert profile.status_code == 200
    assert profile.json()["email"] == staff.email
    assert "password_hash" not in profile.json()

    listing = await client.get("/api/admin/staff", headers=auth_headers(admin))
    assert [item["id"] for item in listing.json()] == [str(staff.id)]
