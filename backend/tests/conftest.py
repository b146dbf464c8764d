"""
Configuration partagée pour tous les tests.
Override la dépendance get_db pour éviter toute connexion réelle à PostgreSQL,
et remplace le contrôleur du tableau de bord par un contrôleur alimenté en mémoire.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from app.database import get_db
from app.events import ChangeFeed
from app.main import app
from app.services.dashboard import DashboardController

SUPER_ADMIN_HEADERS = {
    "X-Admin-Role": "super_admin",
    "X-Admin-Id": "admin-1",
    "X-Admin-Username": "admin",
}


@pytest.fixture
def dashboard_data():
    """Données servies par le contrôleur de test (modifiables dans chaque test)."""
    return {"students": [], "companies": [], "programs": {}}


@pytest.fixture
def client(dashboard_data):
    """Client HTTP de test avec la BDD mockée et une session super admin."""
    mock_db = MagicMock()
    app.dependency_overrides[get_db] = lambda: mock_db

    controller = DashboardController(
        load_students=lambda: dashboard_data["students"],
        load_companies=lambda: dashboard_data["companies"],
        load_program_map=lambda: dashboard_data["programs"],
        feed=ChangeFeed(),
        required_documents=["Medical Certificate", "Curriculum Vitae"],
    )
    with patch("app.main.create_dashboard", return_value=controller):
        with TestClient(app, headers=SUPER_ADMIN_HEADERS) as c:
            yield c
    app.dependency_overrides.clear()


@pytest.fixture
def override_db():
    """Installe un mock de session BDD spécifique au test et le retourne."""
    def _install(db):
        app.dependency_overrides[get_db] = lambda: db
        return db
    return _install
