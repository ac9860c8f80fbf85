from conftest import bearer, register
from models.notification import Notification
from models.user import User, UserRole


def create_hub(client, headers, name="North Depot", city="Albany"):
    return client.post("/api/hubs", headers=headers, json={"name": name, "city": city})


def test_create_hub_makes_owner_and_promotes_user(client, db, worker):
    response = create_hub(client, worker["headers"])
    assert response.status_code == 201
    hub = response.json()["hub"]

    mine = client.get("/api/hubs/my", headers=worker["headers"]).json()["membership"]
    assert mine["role"] == "OWNER"
    assert mine["hub"]["id"] == hub["id"]

    user = db.query(User).filter(User.user_id == worker["user"]["id"]).one()
    assert user.role == UserRole.HUB_ADMIN


def test_my_hub_without_membership(client, worker):
    response = client.get("/api/hubs/my", headers=worker["headers"])
    assert response.status_code == 404
    assert response.json() == {"error": "Not a member of any hub"}


def test_member_cannot_create_or_join_another_hub(client, worker):
    first = create_hub(client, worker["headers"]).json()["hub"]
    second_owner = bearer(register(client, email="owner2@example.com")["token"])
    second = create_hub(client, second_owner, name="South Depot").json()["hub"]

    assert create_hub(client, worker["headers"], name="Third").status_code == 409
    assert client.post(f"/api/hubs/{second['id']}/join", headers=worker["headers"]).status_code == 409
    assert first["id"] != second["id"]


def test_join_and_members(client, worker):
    hub = create_hub(client, worker["headers"]).json()["hub"]
    driver = bearer(register(client, email="driver2@example.com")["token"])

    joined = client.post(f"/api/hubs/{hub['id']}/join", headers=driver)
    assert joined.status_code == 201
    assert joined.json()["membership"]["role"] == "DRIVER"

    members = client.get(f"/api/hubs/{hub['id']}/members", headers=worker["headers"]).json()["members"]
    assert [m["role"] for m in members] == ["OWNER", "DRIVER"]
    assert members[1]["user"]["email"] == "driver2@example.com"

    denied = client.get(f"/api/hubs/{hub['id']}/members", headers=driver)
    assert denied.status_code == 403
    assert denied.json() == {"error": "Admin access required"}


def test_super_admin_sees_any_roster(client, worker, super_admin):
    hub = create_hub(client, worker["headers"]).json()["hub"]

    response = client.get(f"/api/hubs/{hub['id']}/members", headers=super_admin["headers"])
    assert response.status_code == 200
    assert len(response.json()["members"]) == 1


def test_join_unknown_hub(client, worker):
    assert client.post("/api/hubs/9999/join", headers=worker["headers"]).status_code == 404


def test_search_and_list_hubs(client, worker):
    create_hub(client, worker["headers"], name="North Depot", city="Albany")
    other = bearer(register(client, email="o@example.com")["token"])
    create_hub(client, other, name="Harbor Yard", city="Boston")

    by_city = client.get("/api/hubs/search", headers=worker["headers"], params={"q": "bost"}).json()["hubs"]
    assert [h["name"] for h in by_city] == ["Harbor Yard"]

    everything = client.get("/api/hubs", headers=worker["headers"]).json()["hubs"]
    assert [h["name"] for h in everything] == ["Harbor Yard", "North Depot"]


def test_notifications(client, db, worker):
    user_id = worker["user"]["id"]
    db.add_all([
        Notification(user_id=user_id, title="One", body="first"),
        Notification(user_id=user_id, title="Two", body="second"),
    ])
    db.commit()
    headers = worker["headers"]

    listed = client.get("/api/notifications", headers=headers).json()["notifications"]
    assert len(listed) == 2
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unreadCount": 2}

    read = client.patch(f"/api/notifications/{listed[0]['id']}/read", headers=headers)
    assert read.json()["notification"]["isRead"] is True
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unreadCount": 1}

    assert client.patch("/api/notifications/mark-all-read", headers=headers).json() == {"updated": 1}
    assert client.get("/api/notifications/unread-count", headers=headers).json() == {"unreadCount": 0}

    assert client.patch("/api/notifications/9999/read", headers=headers).status_code == 404
