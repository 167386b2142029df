import sys
from pathlib import Path

import pytest


ROOT_DIR = Path(__file__).resolve().parents[1]

if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


RISK_CSV = """Risk ID,Description,Risk Level,Risk Type,Function ID,Function Description,Action
R1,P2P - Create and approve vendor,High,Segregation of Duties,F1,Create vendor,create
R1,P2P - Create and approve vendor,High,Segregation of Duties,F2,Approve vendor,approve
R2,GL - Delete journal,Critical,Critical Action,F3,Delete journal,delete
"""

ROLE_CSV = """Final Placement,Action
Clerk,CREATE
Manager,CREATE
Manager,APPROVE
Admin,delete
"""


@pytest.fixture
def risk_csv(tmp_path):
    path = tmp_path / "risk_dataset.csv"
    path.write_text(RISK_CSV, encoding="utf-8")
    return path


@pytest.fixture
def role_csv(tmp_path):
    path = tmp_path / "roles.csv"
    path.write_text(ROLE_CSV, encoding="utf-8")
    return path
