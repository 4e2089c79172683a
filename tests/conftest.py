import os

# Uygulama modülleri import edilmeden önce test ortamı ayarlanır
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OPENROUTER_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dernek_api import veritabani
from dernek_api.api_ana import app
from dernek_api.config import settings
from dernek_api.modeller import Base


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def rapor_dizini(tmp_path, monkeypatch):
    dizin = tmp_path / "server_reports"
    monkeypatch.setattr(settings, "REPORTS_DIR", str(dizin))
    return dizin


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[veritabani.get_db] = override_get_db
    yield TestClient(app, headers={"X-Kullanici": "test.kullanici"})
    app.dependency_overrides.clear()


@pytest.fixture
def kisi_olustur(client):
    def _olustur(**alanlar):
        veri = {"ad": "Ali", "soyad": "Veli", **alanlar}
        response = client.post("/kisiler/", json=veri)
        assert response.status_code == 201, response.text
        return response.json()
    return _olustur


@pytest.fixture
def basvuru_olustur(client, kisi_olustur):
    def _olustur(**alanlar):
        if "basvuru_sahibi_id" not in alanlar:
            alanlar["basvuru_sahibi_id"] = kisi_olustur(ad="Zeynep", soyad="Kaya")["id"]
        veri = {"basvuru_turu": "Acil Yardım", "talep_tutari": 2500, **alanlar}
        response = client.post("/yardim-basvurulari/", json=veri)
        assert response.status_code == 201, response.text
        return response.json()
    return _olustur
