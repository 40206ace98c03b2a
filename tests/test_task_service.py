"""
TaskService against a real SQLite file: create/update/delete, comments,
filtering, pagination and stats.
"""
from __future__ import annotations

import asyncio
import math
import uuid
from datetime import timedelta

import pytest

from taskhub.domain.common.errors import ForbiddenError, NotFoundError, ValidationError
from taskhub.domain.models import NewTask, TaskChanges, TaskFilter, TaskPriority, TaskStatus
from taskhub.infra.db.repo import TaskSqliteRepo, UserSqliteRepo


def test_create_applies_defaults_and_resolves_people(services, make_user):
    _, creator = make_user("carol")
    _, assignee = make_user("ulrich")

    task = asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Write report", assigned_to=assignee.id, priority=TaskPriority.HIGH)
        )
    )

    assert task.status is TaskStatus.TODO
    assert task.priority is TaskPriority.HIGH
    assert task.created_by == creator.id
    assert task.assignee.username == "ulrich"
    assert task.assignee.email == "ulrich@example.com"
    assert task.creator.id == creator.id
    assert task.progress == 0


def test_create_with_unknown_assignee_writes_nothing(services, make_user):
    _, creator = make_user("carol")

    with pytest.raises(ValidationError) as exc:
        asyncio.run(
            services.tasks.create_task(creator, NewTask(title="Orphan", assigned_to=str(uuid.uuid4())))
        )
    assert exc.value.errors[0].field == "assignedTo"

    page = asyncio.run(services.tasks.list_tasks(creator, TaskFilter()))
    assert page.total == 0


def test_only_creator_or_admin_can_update(services, make_user):
    _, creator = make_user("carol")
    _, other = make_user("oscar")
    _, admin = make_user("adam", admin=True)
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="Mine", assigned_to=other.id)))

    # the assignee is not the creator
    with pytest.raises(ForbiddenError):
        asyncio.run(services.tasks.update_task(other, task.id, TaskChanges({"status": "completed"})))
    unchanged = asyncio.run(services.tasks.get_task(other, task.id))
    assert unchanged.status is TaskStatus.TODO

    updated = asyncio.run(
        services.tasks.update_task(creator, task.id, TaskChanges({"status": "in-progress"}))
    )
    assert updated.status is TaskStatus.IN_PROGRESS
    assert updated.progress == 50

    updated = asyncio.run(
        services.tasks.update_task(admin, task.id, TaskChanges({"priority": "urgent", "actual_hours": 3}))
    )
    assert updated.priority is TaskPriority.URGENT
    assert updated.actual_hours == 3.0
    # untouched fields survive a partial update
    assert updated.status is TaskStatus.IN_PROGRESS


def test_update_coerces_due_date_and_can_clear_it(services, make_user, clock):
    _, creator = make_user("carol")
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="Dated", assigned_to=creator.id)))

    updated = asyncio.run(
        services.tasks.update_task(creator, task.id, TaskChanges({"due_date": "2026-05-01"}))
    )
    assert updated.due_date.isoformat() == "2026-05-01T00:00:00+00:00"

    cleared = asyncio.run(services.tasks.update_task(creator, task.id, TaskChanges({"due_date": None})))
    assert cleared.due_date is None


def test_update_revalidates_fields_and_assignee(services, make_user):
    _, creator = make_user("carol")
    _, other = make_user("oscar")
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="T", assigned_to=creator.id)))

    with pytest.raises(ValidationError):
        asyncio.run(services.tasks.update_task(creator, task.id, TaskChanges({"title": "x" * 201})))
    with pytest.raises(ValidationError):
        asyncio.run(
            services.tasks.update_task(creator, task.id, TaskChanges({"assigned_to": str(uuid.uuid4())}))
        )

    moved = asyncio.run(services.tasks.update_task(creator, task.id, TaskChanges({"assigned_to": other.id})))
    assert moved.assignee.username == "oscar"


def test_delete_requires_creator_or_admin_and_removes_comments(services, make_user):
    _, creator = make_user("carol")
    _, other = make_user("oscar")
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="Temp", assigned_to=other.id)))
    asyncio.run(services.tasks.add_comment(other, task.id, "first"))

    with pytest.raises(ForbiddenError):
        asyncio.run(services.tasks.delete_task(other, task.id))

    asyncio.run(services.tasks.delete_task(creator, task.id))
    with pytest.raises(NotFoundError):
        asyncio.run(services.tasks.get_task(creator, task.id))

    leftover = asyncio.run(services.db.fetchone("SELECT COUNT(*) AS n FROM task_comments;"))
    assert leftover["n"] == 0


def test_missing_task_is_not_found(services, make_user):
    _, user = make_user("carol")
    missing = str(uuid.uuid4())
    with pytest.raises(NotFoundError):
        asyncio.run(services.tasks.get_task(user, missing))
    with pytest.raises(NotFoundError):
        asyncio.run(services.tasks.update_task(user, missing, TaskChanges({"title": "x"})))
    with pytest.raises(NotFoundError):
        asyncio.run(services.tasks.add_comment(user, missing, "hello"))


def test_comments_append_in_creation_order(services, make_user):
    _, creator = make_user("carol")
    _, other = make_user("oscar")
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="Chatty", assigned_to=creator.id)))

    # any authenticated user may comment
    asyncio.run(services.tasks.add_comment(other, task.id, "one"))
    asyncio.run(services.tasks.add_comment(creator, task.id, "two"))
    result = asyncio.run(services.tasks.add_comment(other, task.id, "three"))

    assert [c.text for c in result.comments] == ["one", "two", "three"]
    assert [c.user.username for c in result.comments] == ["oscar", "carol", "oscar"]
    assert result.comments[0].created_at < result.comments[2].created_at


def test_concurrent_comment_appends_are_all_kept(services, make_user):
    _, creator = make_user("carol")
    task = asyncio.run(services.tasks.create_task(creator, NewTask(title="Busy", assigned_to=creator.id)))

    async def burst():
        await asyncio.gather(
            *(services.tasks.add_comment(creator, task.id, f"c{i}") for i in range(5))
        )

    asyncio.run(burst())
    result = asyncio.run(services.tasks.get_task(creator, task.id))
    assert sorted(c.text for c in result.comments) == [f"c{i}" for i in range(5)]


def _seed(services, creator, assignee):
    specs = [
        ("Fix login bug", TaskStatus.TODO, TaskPriority.HIGH, ["auth"]),
        ("Write docs", TaskStatus.IN_PROGRESS, TaskPriority.LOW, ["Documentation"]),
        ("Refactor API", TaskStatus.TODO, TaskPriority.LOW, []),
        ("Release 1.0", TaskStatus.COMPLETED, TaskPriority.URGENT, ["release"]),
        ("Review PR", TaskStatus.REVIEW, TaskPriority.HIGH, []),
    ]
    created = []
    for title, st, pr, tags in specs:
        created.append(
            asyncio.run(
                services.tasks.create_task(
                    creator,
                    NewTask(title=title, assigned_to=assignee.id, status=st, priority=pr, tags=tags),
                )
            )
        )
    return created


@pytest.mark.parametrize("limit", [1, 2, 3, 5, 10])
def test_pagination_respects_limit_and_page_count(services, make_user, limit):
    _, creator = make_user("carol")
    _seed(services, creator, creator)

    page1 = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(), page=1, limit=limit))
    assert len(page1.tasks) <= limit
    assert page1.total == 5
    assert page1.pages == math.ceil(5 / limit)

    seen = []
    for p in range(1, page1.pages + 1):
        seen += [t.id for t in asyncio.run(services.tasks.list_tasks(creator, TaskFilter(), p, limit)).tasks]
    assert len(seen) == len(set(seen)) == 5


def test_list_is_newest_first(services, make_user):
    _, creator = make_user("carol")
    created = _seed(services, creator, creator)
    page = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(), 1, 10))
    assert [t.id for t in page.tasks] == [t.id for t in reversed(created)]


def test_filters_combine_with_and(services, make_user):
    _, creator = make_user("carol")
    _, other = make_user("oscar")
    _seed(services, creator, creator)
    asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Other's", assigned_to=other.id, priority=TaskPriority.LOW)
        )
    )

    todo = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(status=TaskStatus.TODO)))
    assert {t.title for t in todo.tasks} == {"Fix login bug", "Refactor API", "Other's"}
    assert all(t.status is TaskStatus.TODO for t in todo.tasks)

    todo_low = asyncio.run(
        services.tasks.list_tasks(creator, TaskFilter(status=TaskStatus.TODO, priority=TaskPriority.LOW))
    )
    assert {t.title for t in todo_low.tasks} == {"Refactor API", "Other's"}

    for_other = asyncio.run(
        services.tasks.list_tasks(creator, TaskFilter(priority=TaskPriority.LOW, assigned_to=other.id))
    )
    assert [t.title for t in for_other.tasks] == ["Other's"]


def test_search_matches_title_description_and_tags_case_insensitively(services, make_user):
    _, creator = make_user("carol")
    _seed(services, creator, creator)
    asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Misc", description="Investigate LOGIN timeouts", assigned_to=creator.id)
        )
    )

    by_title = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="LOGIN")))
    assert {t.title for t in by_title.tasks} == {"Fix login bug", "Misc"}

    by_tag = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="document")))
    assert [t.title for t in by_tag.tasks] == ["Write docs"]

    search_and_status = asyncio.run(
        services.tasks.list_tasks(creator, TaskFilter(search="login", status=TaskStatus.TODO))
    )
    assert {t.title for t in search_and_status.tasks} == {"Fix login bug", "Misc"}

    nothing = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="100%")))
    assert nothing.total == 0


def test_blank_search_is_ignored(services, make_user):
    _, creator = make_user("carol")
    _seed(services, creator, creator)
    page = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="   ")))
    assert page.total == 5


def test_overview_stats_and_overdue(services, make_user, clock):
    _, creator = make_user("carol")
    _seed(services, creator, creator)
    past = clock.peek() - timedelta(days=2)
    late = asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Late", assigned_to=creator.id, due_date=past, priority=TaskPriority.HIGH)
        )
    )
    asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Future", assigned_to=creator.id, due_date=clock.peek() + timedelta(days=5))
        )
    )

    stats = asyncio.run(services.tasks.overview_stats(creator))
    assert stats.total == 7
    assert stats.overdue == 1
    assert stats.by_priority["high"] == 3
    assert stats.by_status["todo"] == 4
    assert sum(stats.by_status.values()) == stats.total
    assert late.is_overdue(clock.peek())

    asyncio.run(services.tasks.update_task(creator, late.id, TaskChanges({"status": "completed"})))
    stats = asyncio.run(services.tasks.overview_stats(creator))
    assert stats.overdue == 0
    assert stats.by_status["completed"] == 2


def test_stats_omit_empty_categories(services, make_user):
    _, creator = make_user("carol")
    asyncio.run(services.tasks.create_task(creator, NewTask(title="Only", assigned_to=creator.id)))
    stats = asyncio.run(services.tasks.overview_stats(creator))
    assert stats.by_status == {"todo": 1}
    assert stats.by_priority == {"medium": 1}


def test_search_folds_non_ascii_case(services, make_user):
    _, creator = make_user("carol")
    asyncio.run(services.tasks.create_task(creator, NewTask(title="Ärger mit Übersetzung", assigned_to=creator.id)))
    asyncio.run(
        services.tasks.create_task(
            creator, NewTask(title="Straßenbau", assigned_to=creator.id, tags=["ÉTÉ"])
        )
    )

    assert asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="ärger"))).total == 1
    assert asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="ÜBERSETZUNG"))).total == 1
    assert asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="strasse"))).total == 1
    by_tag = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(search="été")))
    assert [t.title for t in by_tag.tasks] == ["Straßenbau"]


def test_page_past_the_end_is_empty_and_absurd_page_is_rejected(services, make_user):
    _, creator = make_user("carol")
    _seed(services, creator, creator)
    far = asyncio.run(services.tasks.list_tasks(creator, TaskFilter(), page=1000, limit=100))
    assert far.tasks == []
    assert far.total == 5
    with pytest.raises(ValidationError):
        asyncio.run(services.tasks.list_tasks(creator, TaskFilter(), page=10**20, limit=10))


def test_comment_on_vanished_task_is_not_found(services, make_user):
    _, creator = make_user("carol")
    repo = TaskSqliteRepo(services.db, UserSqliteRepo(services.db))
    with pytest.raises(NotFoundError):
        asyncio.run(repo.add_comment(str(uuid.uuid4()), creator.id, "late", "2026-03-01T09:00:00.000000+00:00"))
