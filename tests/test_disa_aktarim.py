from datetime import date
from io import BytesIO

import openpyxl
import pytest

from dernek_api import disa_aktarim
from dernek_api.modeller import BagisTuru, KisiDurumu


def _excel(satirlar):
    wb = openpyxl.Workbook()
    for satir in satirlar:
        wb.active.append(satir)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.mark.parametrize("deger, beklenen", [
    (None, ""),
    (True, "Evet"),
    (False, "Hayır"),
    (KisiDurumu.PASIF, "Pasif"),
    (date(2024, 2, 29), "29.02.2024"),
    ({"a": "ç"}, '{"a": "ç"}'),
    (12.5, 12.5),
])
def test_excel_hucre_degeri(deger, beklenen):
    assert disa_aktarim.excel_hucre_degeri(deger) == beklenen


def test_excel_raporu_kaydet(rapor_dizini):
    kayitlar = [{"id": 1, "ad": "Ali", "soyad": "Veli", "durum": KisiDurumu.AKTIF, "kayit_tarihi": date(2024, 1, 5)}]
    dosya_adi, filepath = disa_aktarim.excel_raporu_kaydet("kisiler", kayitlar)

    assert filepath == str(rapor_dizini / dosya_adi)
    ws = openpyxl.load_workbook(filepath).active
    assert ws.title == "Kişiler"
    assert ws["A1"].font.bold
    satir = [h.value for h in ws[2]]
    assert satir[:3] == [1, "Ali", "Veli"]
    assert "05.01.2024" in satir


def test_excel_raporu_kaydet_unknown_source():
    with pytest.raises(ValueError, match="Desteklenmeyen rapor kaynağı"):
        disa_aktarim.excel_raporu_kaydet("sifreler", [])


def test_baslik_eslestir_exact_and_normalized():
    eslesme = disa_aktarim.baslik_eslestir(["AD", " Soyad ", "dogum tarihi", "Sehir", None, "GSM"])
    assert eslesme == {"ad": 0, "soyad": 1, "dogum_tarihi": 2, "il": 3, "cep_telefonu": 5}


def test_kisi_excel_oku_parses_types():
    icerik = _excel([
        ["Name", "Surname", "BirthDate", "Aylık Gelir", "Hane Büyüklüğü", "Üyelik Türü"],
        ["Ali", "Veli", "15.03.1985", "1.250,50", 4, "Standart"],
        [None, None, None, None, None, None],
        ["Ayşe", "Kaya", "1990-07-01", None, "3", None],
    ])
    sonuc = disa_aktarim.kisi_excel_oku(icerik)

    assert sonuc["toplam_satir"] == 2
    assert sonuc["hatalar"] == []
    ali, ayse = sonuc["kayitlar"]
    assert ali.dogum_tarihi == date(1985, 3, 15)
    assert ali.aylik_gelir == 1250.5
    assert ali.hane_buyuklugu == 4
    assert ali.uyelik_turu.value == "Standart"
    assert ayse.dogum_tarihi == date(1990, 7, 1)
    assert ayse.hane_buyuklugu == 3


def test_kisi_excel_oku_reports_row_errors():
    icerik = _excel([
        ["Ad", "Soyad", "Doğum Tarihi", "Hane Büyüklüğü", "Kimlik No", "Eposta"],
        ["A", "B", "31.02.2020", None, None, None],
        ["C", "D", None, "2,5", None, None],
        ["E", "F", None, None, "111", None],
        ["G", "H", None, None, "111", None],
        ["I", "J", None, None, None, "gecersiz"],
        ["K", "L", None, None, "222", None],
    ])
    sonuc = disa_aktarim.kisi_excel_oku(icerik, mevcut_kimlik_nolari={"222"})

    assert [k.ad for k in sonuc["kayitlar"]] == ["E"]
    assert sonuc["hatalar"][0] == "Satır 2: Geçersiz tarih: 31.02.2020"
    assert sonuc["hatalar"][1] == "Satır 3: Geçersiz hane büyüklüğü: 2,5"
    assert sonuc["hatalar"][2] == "Satır 5: 111 kimlik numarası dosyada tekrar ediyor."
    assert sonuc["hatalar"][3].startswith("Satır 6: email")
    assert sonuc["hatalar"][4] == "Satır 7: 222 kimlik numarası sistemde zaten kayıtlı."


def test_kisi_excel_oku_empty_and_invalid_files():
    with pytest.raises(ValueError, match="Excel dosyası boş"):
        disa_aktarim.kisi_excel_oku(_excel([]))
    with pytest.raises(ValueError, match="Excel dosyası okunamadı"):
        disa_aktarim.kisi_excel_oku(b"bozuk")


def test_pdf_reports_render_with_and_without_rows():
    bagis = {
        "id": 1, "makbuz_no": "MKB-2024-0001", "bagisci_adi": "Ali Veli", "tutar": 100.0, "para_birimi": "TRY",
        "bagis_turu": BagisTuru.NAKIT, "tarih": date(2024, 1, 1), "proje_adi": None, "aciklama": "<Zekat> & fitre",
    }
    assert disa_aktarim.bagis_pdf([bagis]).startswith(b"%PDF")
    assert disa_aktarim.kisi_pdf([]).startswith(b"%PDF")
    assert set(disa_aktarim.PDF_KAYNAKLARI) == {"kisiler", "bagislar", "basvurular"}


def test_tablo_satirlari_formats_amounts():
    satirlar = disa_aktarim._tablo_satirlari(
        [{"id": 3, "tutar": 1500, "para_birimi": "USD"}], [("id", "ID"), ("tutar", "Tutar")]
    )
    assert satirlar == [[3, "$1.500,00"]]
