from unittest.mock import MagicMock

from panel import veri
from panel.veri import BilesikVeriKaynagi, VeriKaynagi


def test_data_is_loaded_lazily_once():
    fetcher = MagicMock(return_value=[1, 2])
    kaynak = VeriKaynagi(fetcher, "Test")
    fetcher.assert_not_called()

    assert kaynak.data == [1, 2]
    assert kaynak.data == [1, 2]
    assert fetcher.call_count == 1
    assert kaynak.error is None
    assert kaynak.is_loading is False


def test_refresh_refetches():
    fetcher = MagicMock(side_effect=[["eski"], ["yeni"]])
    kaynak = VeriKaynagi(fetcher)
    assert kaynak.data == ["eski"]
    assert kaynak.refresh() == ["yeni"]
    assert kaynak.data == ["yeni"]


def test_failed_refresh_keeps_previous_data():
    fetcher = MagicMock(side_effect=[["eski"], ValueError("Bağlantı hatası: zaman aşımı")])
    kaynak = VeriKaynagi(fetcher, "Kişiler")
    assert kaynak.data == ["eski"]

    kaynak.refresh()
    assert kaynak.data == ["eski"]
    assert kaynak.error == "Veri yüklenemedi: Bağlantı hatası: zaman aşımı"
    assert kaynak.is_loading is False


def test_first_load_error_leaves_data_empty():
    kaynak = VeriKaynagi(MagicMock(side_effect=ValueError("API Hatası: x")))
    assert kaynak.data is None
    assert kaynak.error == "Veri yüklenemedi: API Hatası: x"


def test_composite_source_reports_first_error():
    iyi = VeriKaynagi(lambda: [1])
    kotu = VeriKaynagi(MagicMock(side_effect=ValueError("kapalı")))
    bilesik = BilesikVeriKaynagi(bagislar=iyi, kisiler=kotu)

    assert bilesik.data == {"bagislar": [1], "kisiler": None}
    assert bilesik.error == "Veri yüklenemedi: kapalı"
    assert bilesik.is_loading is False


def _sayfali_istemci(kayitlar, sayfa_boyutu=veri.SAYFA_BOYUTU):
    def liste(sayfa=1, sayfa_boyutu=sayfa_boyutu, **filtreler):
        bas = (sayfa - 1) * sayfa_boyutu
        toplam_sayfa = max(1, -(-len(kayitlar) // sayfa_boyutu))
        return {"items": kayitlar[bas:bas + sayfa_boyutu], "total": len(kayitlar), "page": sayfa,
                "page_size": sayfa_boyutu, "total_pages": toplam_sayfa}

    istemci = MagicMock()
    istemci.kisi_listesi_al.side_effect = liste
    istemci.bagis_listesi_al.side_effect = liste
    istemci.proje_listesi_al.side_effect = liste
    return istemci


def test_all_pages_are_collected():
    kayitlar = [{"id": i} for i in range(450)]
    istemci = _sayfali_istemci(kayitlar)
    kaynak = veri.kisiler_kaynagi(istemci, durum="Aktif")

    assert len(kaynak.data) == 450
    assert istemci.kisi_listesi_al.call_count == 3
    assert istemci.kisi_listesi_al.call_args.kwargs == {"sayfa": 3, "sayfa_boyutu": 200, "durum": "Aktif"}


def test_uye_yonetimi_excludes_volunteers_and_non_members():
    kisiler = [
        {"id": 1, "uyelik_turu": "Standart"},
        {"id": 2, "uyelik_turu": "Gönüllü"},
        {"id": 3, "uyelik_turu": None},
        {"id": 4, "uyelik_turu": "Onursal"},
    ]
    kaynak = veri.uye_yonetimi_kaynagi(_sayfali_istemci(kisiler))
    assert [k["id"] for k in kaynak.data] == [1, 4]


def test_bagis_yonetimi_combines_three_sources():
    istemci = _sayfali_istemci([{"id": 1}])
    kaynak = veri.bagis_yonetimi_kaynagi(istemci)
    assert set(kaynak.data) == {"bagislar", "kisiler", "projeler"}
    assert kaynak.refresh() == {"bagislar": [{"id": 1}], "kisiler": [{"id": 1}], "projeler": [{"id": 1}]}
