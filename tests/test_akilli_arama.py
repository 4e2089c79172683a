from datetime import date
from unittest.mock import patch

import pytest
import requests

from dernek_api import akilli_arama
from dernek_api.config import settings


@pytest.mark.parametrize("sorgu, path, filtreler", [
    ("İstanbul'daki pasif gönüllüler", "/gonulluler", {"sehir": "İstanbul", "durum": "Pasif"}),
    ("izmir gönüllüleri", "/gonulluler", {"sehir": "İzmir"}),
    ("Onaylanan acil yardım başvuruları", "/yardimlar", {"durum": "Onaylanan", "basvuruTuru": "Acil Yardım"}),
    ("onaylı sağlık yardımları", "/yardimlar", {"durum": "Onaylanan", "basvuruTuru": "Sağlık Yardımı"}),
    ("Tamamlanmış projeler", "/projeler", {"status": "Tamamlandı"}),
    ("Kredi kartı ile yapılan bağışlar", "/bagis-yonetimi/tum-bagislar", {"bagisTuru": "Kredi Kartı"}),
    ("tüm bağışlar", "/bagis-yonetimi/tum-bagislar", {}),
    ("Kişilerde Ahmet ara", "/kisiler", {"searchTerm": "Ahmet"}),
    ("Üyeleri listele", "/kisiler", {}),
    ("merhaba", "/", {}),
])
def test_kural_tabanli_gezinme(sorgu, path, filtreler):
    sonuc = akilli_arama.kural_tabanli_gezinme(sorgu)
    assert sonuc["path"] == path
    assert sonuc["filters"] == filtreler
    assert sonuc["explanation"]


@pytest.fixture
def api_anahtari(monkeypatch):
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "anahtar")


def _model_yaniti(mock_post, icerik):
    mock_post.return_value.json.return_value = {"choices": [{"message": {"content": icerik}}]}


def test_gezinme_without_key_does_not_call_model():
    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        sonuc = akilli_arama.gezinme_sorgusu("Nakit bağışlar")
    mock_post.assert_not_called()
    assert sonuc["filters"] == {"bagisTuru": "Nakit"}


def test_gezinme_uses_model_answer(api_anahtari):
    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        _model_yaniti(mock_post, '{"path": "/odemeler", "filters": {"durum": "Bekleyen", "bos": null}, "explanation": "Bekleyen ödemeler"}')
        sonuc = akilli_arama.gezinme_sorgusu("bekleyen ödemeler")

    assert sonuc == {"path": "/odemeler", "filters": {"durum": "Bekleyen"}, "explanation": "Bekleyen ödemeler"}
    govde = mock_post.call_args.kwargs["json"]
    assert govde["model"] == settings.OPENROUTER_MODEL
    assert govde["response_format"] == {"type": "json_object"}
    assert "bekleyen ödemeler" in govde["messages"][1]["content"]


@pytest.mark.parametrize("icerik", [
    "json değil",
    '["liste"]',
    '{"filters": {}, "explanation": "path yok"}',
    '{"path": "kisiler", "explanation": "eğik çizgi yok"}',
    "   ",
])
def test_gezinme_falls_back_on_invalid_model_output(api_anahtari, icerik):
    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        _model_yaniti(mock_post, icerik)
        sonuc = akilli_arama.gezinme_sorgusu("Tamamlanmış projeler")
    assert sonuc["path"] == "/projeler"


def test_gezinme_falls_back_on_network_error(api_anahtari):
    with patch("dernek_api.akilli_arama.requests.post", side_effect=requests.exceptions.Timeout("zaman aşımı")):
        sonuc = akilli_arama.gezinme_sorgusu("Online bağışlar")
    assert sonuc["filters"] == {"bagisTuru": "Online"}


def test_yonlendirme_url():
    assert akilli_arama.yonlendirme_url({"path": "/", "filters": {}}) == "/"
    assert akilli_arama.yonlendirme_url({"path": "/kisiler", "filters": {"searchTerm": "Ali Can"}}) == "/kisiler?searchTerm=Ali+Can"


def test_oneriler():
    assert akilli_arama.oneriler("gönüllü", limit=1) == ["Ankara'daki aktif gönüllüler"]
    assert akilli_arama.oneriler(None) == akilli_arama.VARSAYILAN_ONERILER[:8]


def test_analitik_ozet_model_and_fallback(api_anahtari):
    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        _model_yaniti(mock_post, '{"ozet": "Dengeli", "olumlu_egilimler": ["a"], "dikkat_alanlari": [], "eylem_onerileri": ["b"]}')
        sonuc = akilli_arama.analitik_ozet({"toplam_kisi": 3})
    assert sonuc == {"ozet": "Dengeli", "olumlu_egilimler": ["a"], "dikkat_alanlari": [], "eylem_onerileri": ["b"]}

    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        _model_yaniti(mock_post, '{"baska": 1}')
        varsayilan = akilli_arama.analitik_ozet({})
    assert varsayilan == akilli_arama.VARSAYILAN_ANALITIK_OZET
    varsayilan["olumlu_egilimler"].append("değişiklik")
    assert "değişiklik" not in akilli_arama.VARSAYILAN_ANALITIK_OZET["olumlu_egilimler"]


def test_kisi_ozeti_model_text(api_anahtari):
    with patch("dernek_api.akilli_arama.requests.post") as mock_post:
        _model_yaniti(mock_post, "  Kısa özet.  ")
        assert akilli_arama.kisi_ozeti("Ali Veli", date(2024, 1, 2), "Aktif") == "Kısa özet."
    assert "response_format" not in mock_post.call_args.kwargs["json"]


def test_kisi_ozeti_fallback():
    ozet = akilli_arama.kisi_ozeti("Ali Veli", date(2024, 1, 2), "Pasif")
    assert ozet.startswith("Ali Veli adlı kişi 02.01.2024 tarihinde sisteme kaydedilmiştir.")
    assert "Özel durumları: Yok." in ozet
    assert "Notlar: Ek not yok." in ozet
