from unittest.mock import patch


def test_root(client):
    assert client.get("/").json() == {"message": "Dernek Yönetim Paneli API'sine hoş geldiniz!"}


def test_status(client):
    assert client.get("/sistem/status").json() == {"status": "ok", "database": "connected"}


def test_secenekler(client):
    secenekler = client.get("/sistem/secenekler").json()
    assert secenekler["basvuru_durumlari"] == [
        "Bekleyen", "İncelenen", "Onaylanan", "Reddedilen", "Tamamlanan", "Başkan Reddetti"
    ]
    assert "Ayni Yardım" in secenekler["bagis_turleri"]
    assert secenekler["para_birimleri"] == ["TRY", "USD", "EUR"]


def test_akilli_arama_rule_fallback_and_audit(client):
    response = client.post("/arama/akilli", json={"sorgu": "Ankara'daki aktif gönüllüler"})
    assert response.status_code == 200
    assert response.json() == {
        "path": "/gonulluler",
        "filters": {"sehir": "Ankara", "durum": "Aktif"},
        "explanation": "Gönüllüler sayfasına yönlendiriliyor.",
    }

    kayitlar = client.get("/denetim-kayitlari/", params={"eylem": "Akıllı Arama"}).json()["items"]
    assert len(kayitlar) == 1
    assert kayitlar[0]["aciklama"] == "Akıllı arama: Ankara'daki aktif gönüllüler"
    assert kayitlar[0]["entity_tipi"] == "Sistem"
    assert kayitlar[0]["detaylar"]["path"] == "/gonulluler"


def test_akilli_arama_uses_model_when_configured(client, monkeypatch):
    from dernek_api.config import settings
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "test-anahtar")

    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        mock_post.return_value.json.return_value = {
            "choices": [{"message": {"content": '{"path": "/projeler", "filters": {"status": "Planlama"}, "explanation": "Planlanan projeler"}'}}]
        }
        response = client.post("/arama/akilli", json={"sorgu": "planlanan projeler"})

    assert response.json() == {"path": "/projeler", "filters": {"status": "Planlama"}, "explanation": "Planlanan projeler"}
    assert mock_post.call_args.kwargs["headers"]["Authorization"] == "Bearer test-anahtar"


def test_akilli_arama_rejects_empty_query(client):
    assert client.post("/arama/akilli", json={"sorgu": ""}).status_code == 422


def test_oneriler(client):
    assert len(client.get("/arama/oneriler").json()["items"]) == 8
    assert client.get("/arama/oneriler", params={"q": "bağış"}).json()["items"] == [
        "Nakit bağışlar",
        "Kredi kartı ile yapılan bağışlar",
        "Online bağışlar",
        "Ayni bağışlar",
    ]
    assert client.get("/arama/oneriler", params={"q": "proje", "limit": 0}).json()["items"] == ["Tamamlanmış projeler"]


def test_denetim_filters_by_user_and_date(client, kisi_olustur):
    kisi_olustur()
    client.post("/kisiler/", json={"ad": "B", "soyad": "C"}, headers={"X-Kullanici": "diger.kullanici"})

    assert client.get("/denetim-kayitlari/", params={"kullanici_adi": "diger.kullanici"}).json()["total"] == 1
    assert client.get("/denetim-kayitlari/", params={"baslangic": "2000-01-01"}).json()["total"] == 2
    assert client.get("/denetim-kayitlari/", params={"bitis": "2000-01-01"}).json()["total"] == 0
    assert client.get("/denetim-kayitlari/", params={"arama": "yeni kişi kaydı"}).json()["total"] == 2
