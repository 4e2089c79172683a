def _proje(client, **alanlar):
    response = client.post("/projeler/", json={"ad": "Su Kuyusu", **alanlar})
    assert response.status_code == 201, response.text
    return response.json()


def _odeme(client, **alanlar):
    veri = {"odeme_turu": "Gider Ödemesi", "kisi": "Kırtasiye A.Ş.", "tutar": 120, "odeme_yontemi": "Nakit", **alanlar}
    return client.post("/odemeler/", json=veri)


def test_create_proje_defaults(client):
    proje = _proje(client, butce=2000, harcanan=500)
    assert proje["durum"] == "Planlama"
    assert proje["ilerleme"] == 0
    assert proje["gorevler"] == []
    assert proje["toplanan_bagis"] == 0
    assert proje["butce_kullanim_orani"] == 25.0


def test_create_proje_validation(client):
    assert client.post("/projeler/", json={"ad": "X", "ilerleme": 101}).status_code == 422
    assert client.post("/projeler/", json={
        "ad": "X", "baslangic_tarihi": "2024-05-01", "bitis_tarihi": "2024-04-01"
    }).status_code == 422


def test_update_proje(client):
    proje = _proje(client, baslangic_tarihi="2024-05-01")
    response = client.put(f"/projeler/{proje['id']}", json={"durum": "Devam Ediyor", "ilerleme": 40, "version": 0})
    assert response.status_code == 200
    assert response.json()["durum"] == "Devam Ediyor"
    assert response.json()["version"] == 1

    assert client.put(f"/projeler/{proje['id']}", json={"bitis_tarihi": "2024-01-01"}).status_code == 400
    assert client.put(f"/projeler/{proje['id']}", json={"ad": "Yeni", "version": 0}).status_code == 409
    assert client.put(f"/projeler/{proje['id']}", json={"butce": None}).status_code == 422


def test_list_projeler(client):
    _proje(client, ad="Okul", durum="Tamamlandı")
    _proje(client, ad="Kuyu", durum="Devam Ediyor")
    assert [p["ad"] for p in client.get("/projeler/").json()["items"]] == ["Kuyu", "Okul"]
    assert [p["ad"] for p in client.get("/projeler/", params={"durum": "Tamamlandı"}).json()["items"]] == ["Okul"]


def test_gorev_lifecycle(client, kisi_olustur):
    proje = _proje(client)
    sorumlu = kisi_olustur(ad="Gönüllü", soyad="Kişi")

    response = client.post(f"/projeler/{proje['id']}/gorevler", json={"baslik": "Sondaj", "sorumlu_id": sorumlu["id"]})
    assert response.status_code == 201
    gorev = response.json()
    assert gorev["durum"] == "Yapılacak"
    assert gorev["proje_id"] == proje["id"]

    guncel = client.put(f"/projeler/{proje['id']}/gorevler/{gorev['id']}", json={"durum": "Tamamlandı"})
    assert guncel.status_code == 200
    assert guncel.json()["durum"] == "Tamamlandı"
    assert client.put(f"/projeler/{proje['id']}/gorevler/{gorev['id']}", json={"baslik": None}).status_code == 422

    assert [g["baslik"] for g in client.get(f"/projeler/{proje['id']}").json()["gorevler"]] == ["Sondaj"]

    assert client.delete(f"/projeler/{proje['id']}/gorevler/{gorev['id']}").status_code == 204
    assert client.get(f"/projeler/{proje['id']}").json()["gorevler"] == []


def test_gorev_checks_references(client):
    proje = _proje(client)
    diger = _proje(client, ad="Diğer")
    response = client.post(f"/projeler/{proje['id']}/gorevler", json={"baslik": "X", "sorumlu_id": 999})
    assert response.status_code == 404
    assert response.json()["detail"] == "Sorumlu kişi bulunamadı"

    gorev = client.post(f"/projeler/{proje['id']}/gorevler", json={"baslik": "X"}).json()
    yanlis = client.put(f"/projeler/{diger['id']}/gorevler/{gorev['id']}", json={"baslik": "Y"})
    assert yanlis.status_code == 404
    assert yanlis.json()["detail"] == "Görev bulunamadı"
    assert client.post("/projeler/999/gorevler", json={"baslik": "X"}).status_code == 404


def test_delete_proje_removes_tasks(client):
    proje = _proje(client)
    client.post(f"/projeler/{proje['id']}/gorevler", json={"baslik": "X"})
    assert client.delete(f"/projeler/{proje['id']}").status_code == 204
    assert client.get(f"/projeler/{proje['id']}").status_code == 404


def test_odeme_crud(client):
    response = _odeme(client)
    assert response.status_code == 201
    odeme = response.json()
    assert odeme["durum"] == "Bekleyen"
    assert odeme["para_birimi"] == "TRY"

    guncel = client.put(f"/odemeler/{odeme['id']}", json={"durum": "Tamamlanan"})
    assert guncel.json()["durum"] == "Tamamlanan"
    assert client.put(f"/odemeler/{odeme['id']}", json={"tutar": None}).status_code == 422

    assert client.delete(f"/odemeler/{odeme['id']}").status_code == 204
    assert client.get(f"/odemeler/{odeme['id']}").status_code == 404


def test_odeme_validation_and_filters(client):
    assert _odeme(client, tutar=-1).status_code == 422
    assert _odeme(client, odeme_turu="Bilinmeyen").status_code == 422

    _odeme(client, odeme_tarihi="2024-01-01")
    _odeme(client, odeme_turu="Burs Ödemesi", kisi="Öğrenci", odeme_yontemi="Banka Transferi", odeme_tarihi="2024-02-01")

    assert [o["kisi"] for o in client.get("/odemeler/").json()["items"]] == ["Öğrenci", "Kırtasiye A.Ş."]
    assert client.get("/odemeler/", params={"odeme_turu": "Burs Ödemesi"}).json()["total"] == 1
    assert client.get("/odemeler/", params={"odeme_yontemi": "Nakit"}).json()["total"] == 1
    assert client.get("/odemeler/", params={"arama": "kırtasiye"}).json()["total"] == 1
