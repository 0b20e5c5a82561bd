from pathlib import Path
from textwrap import dedent

import pytest
from fastapi.testclient import TestClient

from pmstandards.api import create_app
from pmstandards.store import DataStore, csv_loader


STANDARDS_CSV = dedent(
    """\
    Topic,Standards,Page,Excerpt
    Risk Management,PMBOK 7,120,"Risk is an uncertain event; identify risks early."
    ,PRINCE2,85,"The risk theme establishes a risk management approach."
    ,ISO 21500,-,"Risk management should be integrated into governance."
    Stakeholder Engagement,PMBOK 7,30,"Engage stakeholders proactively and often."
    ,PRINCE2,,
    Quality,,12,"Quality is planned, not inspected in."
    Quality,ISO 21502,,"Quality assurance verifies conformance."
    """
)

COMPARISONS_CSV = dedent(
    """\
    Similarities,Differences,Unique PMBOK 7,Unique PRINCE2,Unique ISO 21500,Unique ISO 21502
    All address risk,PRINCE2 uses themes,Performance domains,,Process groups,
     Shared stakeholder focus ,,,Tolerances,,Governance
    """
)


def write_csv(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture()
def data_dir(tmp_path):
    write_csv(tmp_path / "standards.csv", STANDARDS_CSV)
    write_csv(tmp_path / "comparisons.csv", COMPARISONS_CSV)
    return tmp_path


@pytest.fixture()
def store(data_dir):
    s = DataStore(csv_loader(data_dir / "standards.csv", data_dir / "comparisons.csv"))
    s.reload()
    return s


@pytest.fixture()
def client(data_dir):
    store = DataStore(csv_loader(data_dir / "standards.csv", data_dir / "comparisons.csv"))
    with TestClient(create_app(store)) as c:
        yield c
