"""
CLI command tests via Flask's CLI runner.
"""

import pytest

from greenverse.models import Product, User


@pytest.fixture
def runner(app, db_session):
    return app.test_cli_runner()


def test_system_init_is_idempotent(runner, db_session):
    result = runner.invoke(args=["system", "init", "--admin-email", "root@example.com"])
    assert result.exit_code == 0, result.output
    assert "PASS Created admin user: root@example.com" in result.output

    again = runner.invoke(args=["system", "init", "--admin-email", "root@example.com"])
    assert again.exit_code == 0
    assert "already exists" in again.output

    db_session.expire_all()
    assert db_session.query(User).filter_by(role="admin").count() == 1
    assert db_session.query(Product).count() == 5


def test_users_create_and_list(runner):
    result = runner.invoke(args=[
        "users", "create",
        "--email", "ops@example.com",
        "--name", "Ops",
        "--password", "secret1",
        "--role", "admin",
    ])
    assert result.exit_code == 0, result.output

    listing = runner.invoke(args=["users", "list", "--role", "admin"])
    assert "ops@example.com" in listing.output


def test_users_create_rejects_short_password(runner):
    result = runner.invoke(args=[
        "users", "create", "--email", "x@example.com", "--name", "X", "--password", "123",
    ])
    assert result.exit_code != 0
    assert "at least 6" in result.output


def test_cluster_user_needs_cluster(runner):
    result = runner.invoke(args=[
        "users", "create", "--email", "c@example.com", "--name", "C",
        "--password", "secret1", "--role", "cluster",
    ])
    assert result.exit_code != 0
    assert "--cluster-id" in result.output


def test_clusters_list(runner, cluster_a):
    result = runner.invoke(args=["clusters", "list"])
    assert result.exit_code == 0
    assert "North Cluster" in result.output


def test_clusters_list_empty(runner):
    assert "No clusters found." in runner.invoke(args=["clusters", "list"]).output
