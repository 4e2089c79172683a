import pytest


def _degerlendir(client, basvuru_id, durum, **alanlar):
    return client.post(f"/yardim-basvurulari/{basvuru_id}/degerlendir", json={"durum": durum, **alanlar})


def _baskan_karari(client, basvuru_id, onay, **alanlar):
    return client.post(f"/yardim-basvurulari/{basvuru_id}/baskan-karari", json={"onay": onay, **alanlar})


def test_create_basvuru(client, basvuru_olustur):
    basvuru = basvuru_olustur(talep_detayi="Kira borcu")
    assert basvuru["durum"] == "Bekleyen"
    assert basvuru["asama"] == "Değerlendirme Bekliyor"
    assert basvuru["basvuru_sahibi_adi"] == "Zeynep Kaya"
    assert basvuru["oncelik"] == "Orta"
    assert basvuru["odeme_id"] is None


def test_create_basvuru_unknown_applicant(client):
    response = client.post("/yardim-basvurulari/", json={
        "basvuru_sahibi_id": 42, "basvuru_turu": "Acil Yardım", "talep_tutari": 100
    })
    assert response.status_code == 404
    assert response.json()["detail"] == "Başvuru sahibi kişi bulunamadı."


def test_create_basvuru_rejects_non_positive_amount(client, kisi_olustur):
    kisi = kisi_olustur()
    response = client.post("/yardim-basvurulari/", json={
        "basvuru_sahibi_id": kisi["id"], "basvuru_turu": "Acil Yardım", "talep_tutari": 0
    })
    assert response.status_code == 422


def test_workflow_end_to_end(client, basvuru_olustur):
    basvuru = basvuru_olustur()
    bid = basvuru["id"]

    response = _degerlendir(client, bid, "Onaylanan", degerlendirme_notu="Uygun", version=0)
    assert response.status_code == 200
    assert response.json()["asama"] == "Başkan Onayı Bekliyor"

    kuyruk = client.get("/yardim-basvurulari/baskan-onayi-bekleyenler").json()
    assert [b["id"] for b in kuyruk] == [bid]

    erken_odeme = client.post(f"/yardim-basvurulari/{bid}/odeme")
    assert erken_odeme.status_code == 409

    response = _baskan_karari(client, bid, True, baskan_onay_notu="Onay", version=1)
    assert response.status_code == 200
    assert response.json()["asama"] == "Ödeme Bekliyor"
    assert client.get("/yardim-basvurulari/baskan-onayi-bekleyenler").json() == []

    response = client.post(f"/yardim-basvurulari/{bid}/odeme", json={"version": 2})
    assert response.status_code == 201
    sonuc = response.json()
    assert sonuc["basvuru"]["durum"] == "Tamamlanan"
    assert sonuc["basvuru"]["odeme_id"] == sonuc["odeme"]["id"]
    assert sonuc["odeme"]["odeme_turu"] == "Yardım Ödemesi"
    assert sonuc["odeme"]["kisi"] == "Zeynep Kaya"
    assert sonuc["odeme"]["tutar"] == 2500
    assert sonuc["odeme"]["durum"] == "Tamamlanan"

    tekrar = client.post(f"/yardim-basvurulari/{bid}/odeme")
    assert tekrar.status_code == 409

    odemeler = client.get("/odemeler/").json()
    assert odemeler["total"] == 1

    assert client.put(f"/yardim-basvurulari/{bid}", json={"talep_tutari": 1}).status_code == 409
    assert client.delete(f"/yardim-basvurulari/{bid}").status_code == 409
    assert client.delete(f"/odemeler/{sonuc['odeme']['id']}").status_code == 409

    kayitlar = client.get("/denetim-kayitlari/", params={"entity_tipi": "Yardım Başvurusu", "entity_id": bid}).json()
    eylemler = sorted(k["eylem"] for k in kayitlar["items"])
    assert eylemler == sorted(["Oluşturma", "Güncelleme", "Onaylama", "Ödeme Oluşturma"])


def test_president_rejection_is_final(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    _degerlendir(client, bid, "Onaylanan")
    response = _baskan_karari(client, bid, False, baskan_onay_notu="Bütçe yok")
    assert response.status_code == 200
    assert response.json()["durum"] == "Başkan Reddetti"
    assert response.json()["asama"] == "Başkan Reddetti"

    assert _degerlendir(client, bid, "Onaylanan").status_code == 409
    assert client.post(f"/yardim-basvurulari/{bid}/odeme").status_code == 409


def test_president_decision_requires_committee_approval(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    response = _baskan_karari(client, bid, True)
    assert response.status_code == 409
    assert response.json()["detail"] == "Bu başvuru başkan onayı beklemiyor."


def test_evaluation_rejects_workflow_only_statuses(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    assert _degerlendir(client, bid, "Tamamlanan").status_code == 400
    assert _degerlendir(client, bid, "Başkan Reddetti").status_code == 400
    assert _degerlendir(client, bid, "Bilinmeyen").status_code == 422


def test_stale_version_is_rejected(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    assert _degerlendir(client, bid, "İncelenen", version=0).status_code == 200
    response = _degerlendir(client, bid, "Onaylanan", version=0)
    assert response.status_code == 409
    assert "başka bir kullanıcı" in response.json()["detail"]

    guncelle = client.put(f"/yardim-basvurulari/{bid}", json={"oncelik": "Yüksek", "version": 0})
    assert guncelle.status_code == 409


def test_update_basvuru(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    response = client.put(f"/yardim-basvurulari/{bid}", json={"oncelik": "Yüksek", "talep_tutari": 3000, "version": 0})
    assert response.status_code == 200
    assert response.json()["oncelik"] == "Yüksek"
    assert response.json()["talep_tutari"] == 3000
    assert response.json()["version"] == 1


@pytest.mark.parametrize("alan", ["talep_tutari", "basvuru_turu", "oncelik"])
def test_update_basvuru_rejects_null_for_required_fields(client, basvuru_olustur, alan):
    bid = basvuru_olustur()["id"]
    response = client.put(f"/yardim-basvurulari/{bid}", json={alan: None})
    assert response.status_code == 422
    assert alan in response.text

    kayit = client.get(f"/yardim-basvurulari/{bid}").json()
    assert kayit["talep_tutari"] == 2500
    assert kayit["version"] == 0


def test_update_basvuru_allows_clearing_optional_detail(client, basvuru_olustur):
    bid = basvuru_olustur(talep_detayi="Kira borcu")["id"]
    response = client.put(f"/yardim-basvurulari/{bid}", json={"talep_detayi": None})
    assert response.status_code == 200
    assert response.json()["talep_detayi"] is None


def test_delete_basvuru(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    assert client.delete(f"/yardim-basvurulari/{bid}").status_code == 204
    assert client.get(f"/yardim-basvurulari/{bid}").status_code == 404


def test_list_filters_by_status_stage_and_search(client, basvuru_olustur, kisi_olustur):
    ali = kisi_olustur(ad="Ali", soyad="Demir")
    a = basvuru_olustur()["id"]
    b = basvuru_olustur(basvuru_sahibi_id=ali["id"], basvuru_turu="Eğitim Yardımı")["id"]
    _degerlendir(client, b, "Onaylanan")

    onaylanan = client.get("/yardim-basvurulari/", params={"durum": "Onaylanan"}).json()
    assert [x["id"] for x in onaylanan["items"]] == [b]

    asama = client.get("/yardim-basvurulari/", params={"asama": "Değerlendirme Bekliyor"}).json()
    assert [x["id"] for x in asama["items"]] == [a]

    arama = client.get("/yardim-basvurulari/", params={"arama": "demir"}).json()
    assert [x["id"] for x in arama["items"]] == [b]

    tur = client.get("/yardim-basvurulari/", params={"basvuru_turu": "Acil Yardım"}).json()
    assert [x["id"] for x in tur["items"]] == [a]


def test_comments_and_detail(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    response = client.post(f"/yardim-basvurulari/{bid}/yorumlar", json={"icerik": "@mehmet evrakları kontrol eder misin?"})
    assert response.status_code == 201
    yorum = response.json()
    assert yorum["bahsedilenler"] == ["mehmet"]
    assert yorum["kullanici_adi"] == "test.kullanici"
    assert yorum["entity_tipi"] == "Yardım Başvurusu"

    assert client.post(f"/yardim-basvurulari/{bid}/yorumlar", json={"icerik": "  "}).status_code == 400

    detay = client.get(f"/yardim-basvurulari/{bid}").json()
    assert [y["icerik"] for y in detay["yorumlar"]] == ["@mehmet evrakları kontrol eder misin?"]
    assert len(client.get(f"/yardim-basvurulari/{bid}/yorumlar").json()) == 1


def test_attachments(client, basvuru_olustur):
    bid = basvuru_olustur()["id"]
    response = client.post(f"/yardim-basvurulari/{bid}/dosyalar", json={"ad": "gelir_belgesi.pdf", "boyut": 1024})
    assert response.status_code == 201
    assert response.json()["yol"] == f"basvurular/{bid}/gelir_belgesi.pdf"

    tekrar = client.post(f"/yardim-basvurulari/{bid}/dosyalar", json={"ad": "gelir_belgesi.pdf"})
    assert tekrar.status_code == 409

    detay = client.get(f"/yardim-basvurulari/{bid}").json()
    assert [d["ad"] for d in detay["dosyalar"]] == ["gelir_belgesi.pdf"]


def test_workflow_on_missing_application(client):
    assert _degerlendir(client, 999, "Onaylanan").status_code == 404
    assert client.post("/yardim-basvurulari/999/odeme").status_code == 404
