"""Shared fixtures: a three-generation family."""

import pytest

from kinship.models import Person, Snapshot


def _person(pid, gender, year=None, month=None, father=None, mother=None, spouse=None, name="TEST"):
    return Person(
        id=pid,
        name=name,
        gender=gender,
        birth_year=year,
        birth_month=month,
        father_id=father,
        mother_id=mother,
        spouse_id=spouse,
        marital_status="married" if spouse else "single",
    )


@pytest.fixture
def make_person():
    return _person


@pytest.fixture
def family():
    """
    GF1 + GM1 -> U1 (1945), T1 (1948), F1 (1950), U2 (1955)
    U1 = UW
    MGF + MGM -> M1 (1952), MA1 (1958), MU1 (1960)
    F1 = M1   -> P (1975), S (1978)
    F1 + M2   -> H (1980)
    WF + WM   -> WB (1972), W1 (1977), WS (1981)
    P = W1    -> C1 (2000), C2 (2003)
    """
    return [
        _person("GF1", "male", 1920, name="GOPAL"),
        _person("GM1", "female", 1925, name="GITA"),
        _person("U1", "male", 1945, father="GF1", mother="GM1", spouse="UW", name="UMESH"),
        _person("UW", "female", 1947, spouse="U1", name="USHA"),
        _person("T1", "female", 1948, father="GF1", mother="GM1", name="TARA"),
        _person("F1", "male", 1950, father="GF1", mother="GM1", spouse="M1", name="FAREN"),
        _person("U2", "male", 1955, father="GF1", mother="GM1", name="UDAY"),
        _person("MGF", "male", 1922, name="MOHAN"),
        _person("MGM", "female", 1927, name="MEERA"),
        _person("M1", "female", 1952, father="MGF", mother="MGM", spouse="F1", name="MALA"),
        _person("MA1", "female", 1958, father="MGF", mother="MGM", name="MAYA"),
        _person("MU1", "male", 1960, father="MGF", mother="MGM", name="MANOJ"),
        _person("M2", "female", 1956, name="MINA"),
        _person("P", "male", 1975, "MARCH", father="F1", mother="M1", spouse="W1", name="PARESH"),
        _person("S", "male", 1978, father="F1", mother="M1", name="SURESH"),
        _person("H", "female", 1980, father="F1", mother="M2", name="HEMA"),
        _person("WF", "male", 1945, name="WASU"),
        _person("WM", "female", 1950, name="WANDA"),
        _person("WB", "male", 1972, father="WF", mother="WM", name="WIREN"),
        _person("W1", "female", 1977, father="WF", mother="WM", spouse="P", name="WAMIKA"),
        _person("WS", "female", 1981, father="WF", mother="WM", name="WENDY"),
        _person("C1", "male", 2000, father="P", mother="W1", name="CHETAN"),
        _person("C2", "female", 2003, father="P", mother="W1", name="CHARU"),
    ]


@pytest.fixture
def snapshot(family):
    return Snapshot(family)
