import os

import pytest

from phytoquiz.config import settings
from phytoquiz.models import ChoiceKey, QuestionBank
from phytoquiz.questions import QuestionProvider, QuestionsUnavailable, read_csv_bank

SHIPPED_BANKS = os.path.join(os.path.dirname(__file__), "..", "banks")


def test_load_json_and_csv_banks(bank_dir):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()

    pp = provider.fetch(QuestionBank.PP)
    assert [q.id for q in pp] == [1, 2]
    assert pp[1].image == "images/two.png"
    assert pp[1].explanation == "Because."
    assert pp[0].image is None

    p3 = provider.fetch("p3")
    assert [q.id for q in p3] == [7, 8]
    assert p3[0].answer == ChoiceKey.A
    assert p3[0].explanation == "Only licence holders."
    assert [c.key for c in p3[1].choices] == [ChoiceKey.A, ChoiceKey.B]
    assert p3[1].image == "pic.png"
    assert p3[1].explanation is None


def test_fetch_returns_a_copy(bank_dir):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()
    provider.fetch("pp").clear()
    assert len(provider.fetch("pp")) == 2


def test_unknown_bank_falls_back_to_default(bank_dir):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()
    assert provider.fetch("nope") == provider.fetch(QuestionBank.PP)
    assert provider.fetch(None) == provider.fetch(QuestionBank.PP)


def test_missing_bank_is_unavailable(bank_dir):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()
    with pytest.raises(QuestionsUnavailable) as excinfo:
        provider.fetch(QuestionBank.NP)
    assert excinfo.value.bank == QuestionBank.NP


def test_broken_bank_is_unavailable(bank_dir):
    (bank_dir / "np.json").write_text('[{"id": 1, "question": "?"}]', encoding="utf-8")
    (bank_dir / "p2.csv").write_text("id,question\n1,?\n", encoding="utf-8")
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()

    assert provider.broken == {QuestionBank.NP, QuestionBank.P2}
    with pytest.raises(QuestionsUnavailable):
        provider.fetch("np")
    with pytest.raises(QuestionsUnavailable, match="invalid"):
        provider.fetch("p2")
    assert len(provider.fetch("pp")) == 2


def test_missing_directory_is_created(tmp_path):
    directory = tmp_path / "nothing"
    provider = QuestionProvider(str(directory))
    provider.load_all()
    assert directory.is_dir()
    assert provider.banks == {}


def test_read_csv_bank_reports_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("id,question,a,b\n1,?,x,y\n", encoding="utf-8")
    with pytest.raises(ValueError, match="missing columns"):
        read_csv_bank(str(path))


def test_get_banks(bank_dir):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()
    banks = {b["id"]: b for b in provider.get_banks()}

    assert list(banks) == ["np", "pp", "p2", "p3"]
    assert banks["pp"]["count"] == 2
    assert banks["pp"]["available"]
    assert banks["pp"]["title"] == "Phytolicence P1"
    assert not banks["np"]["available"]
    assert banks["np"]["count"] == 0


def test_shipped_banks_load():
    provider = QuestionProvider(SHIPPED_BANKS)
    provider.load_all()
    assert provider.broken == set()
    assert set(provider.banks) == set(QuestionBank)
    assert all(provider.banks[bank] for bank in QuestionBank)


def test_fetch_without_bank_uses_configured_default(bank_dir, monkeypatch):
    provider = QuestionProvider(str(bank_dir))
    provider.load_all()
    assert [q.id for q in provider.fetch()] == [1, 2]

    monkeypatch.setattr(settings, "DEFAULT_BANK", "p3")
    assert [q.id for q in provider.fetch()] == [7, 8]
    assert [q.id for q in provider.fetch("unknown")] == [7, 8]
