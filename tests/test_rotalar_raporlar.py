from io import BytesIO

import openpyxl


def test_dashboard_empty(client):
    response = client.get("/raporlar/dashboard")
    assert response.status_code == 200
    assert response.json() == {
        "istatistikler": {"toplam_uye": 0, "aylik_bagis": 0.0, "aktif_proje": 0, "bekleyen_basvuru": 0},
        "son_aktiviteler": [],
        "aylik_bagislar": [],
    }


def test_dashboard_counts_and_activities(client, kisi_olustur, basvuru_olustur):
    uye = kisi_olustur(ad="Selin", soyad="Er", uyelik_turu="Standart")
    client.post("/bagislar/", json={"bagisci_id": uye["id"], "tutar": 150, "bagis_turu": "Online"})
    client.post("/projeler/", json={"ad": "Kuyu", "durum": "Devam Ediyor"})
    basvuru_olustur()

    sonuc = client.get("/raporlar/dashboard").json()
    assert sonuc["istatistikler"] == {"toplam_uye": 1, "aylik_bagis": 150.0, "aktif_proje": 1, "bekleyen_basvuru": 1}
    tipler = sorted(a["tip"] for a in sonuc["son_aktiviteler"])
    assert tipler == ["application", "donation", "person", "person"]
    bagis = next(a for a in sonuc["son_aktiviteler"] if a["tip"] == "donation")
    assert bagis["tutar"] == "₺150,00"
    assert bagis["aciklama"] == "Selin Er bağış yaptı."
    assert len(sonuc["aylik_bagislar"]) == 1


def test_analitik_and_summary_fallback(client, basvuru_olustur):
    basvuru_olustur()
    analitik = client.get("/raporlar/analitik").json()
    assert analitik["toplam_kisi"] == 1
    assert analitik["basvuru_durumlari"] == [{"name": "Bekleyen", "value": 1}]

    ozet = client.post("/raporlar/analitik/ozet")
    assert ozet.status_code == 200
    assert set(ozet.json()) == {"ozet", "olumlu_egilimler", "dikkat_alanlari", "eylem_onerileri"}
    assert len(ozet.json()["eylem_onerileri"]) == 3


def test_excel_report_and_download(client, kisi_olustur, rapor_dizini):
    kisi_olustur(ad="Ayşe", soyad="Yılmaz", durum="Pasif", dogum_tarihi="1990-04-05")

    response = client.post("/raporlar/excel/kisiler")
    assert response.status_code == 200
    sonuc = response.json()
    assert sonuc["dosya_adi"].startswith("kisiler_raporu_")
    assert sonuc["dosya_adi"].endswith(".xlsx")
    assert (rapor_dizini / sonuc["dosya_adi"]).exists()

    indir = client.get(f"/raporlar/indir/{sonuc['dosya_adi']}")
    assert indir.status_code == 200
    ws = openpyxl.load_workbook(BytesIO(indir.content)).active
    satirlar = list(ws.iter_rows(values_only=True))
    assert satirlar[0][:3] == ("ID", "Ad", "Soyad")
    basliklar = list(satirlar[0])
    assert satirlar[1][basliklar.index("Durum")] == "Pasif"
    assert satirlar[1][basliklar.index("Doğum Tarihi")] == "05.04.1990"


def test_excel_report_unknown_source(client):
    response = client.post("/raporlar/excel/sifreler")
    assert response.status_code == 404
    assert "Bilinmeyen rapor kaynağı" in response.json()["detail"]


def test_download_rejects_bad_names(client):
    assert client.get("/raporlar/indir/rapor.txt").status_code == 400
    assert client.get("/raporlar/indir/yok.xlsx").status_code == 404


def test_pdf_reports(client, basvuru_olustur):
    basvuru_olustur()
    for kaynak in ("kisiler", "bagislar", "basvurular"):
        response = client.get(f"/raporlar/pdf/{kaynak}")
        assert response.status_code == 200, kaynak
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    assert client.get("/raporlar/pdf/odemeler").status_code == 404
