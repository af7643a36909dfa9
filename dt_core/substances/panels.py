# backend/dt_core/substances/panels.py
from __future__ import annotations

from typing import Iterable

from dt_core.substances.constants import SIMPLE_LABELS, Substance, TestType


PANEL_SUBSTANCES: dict[str, frozenset[Substance]] = {
    TestType.PANEL_15_INSTANT: frozenset(
        {
            Substance.SIX_MAM,
            Substance.AMPHETAMINES,
            Substance.BENZODIAZEPINES,
            Substance.BUPRENORPHINE,
            Substance.COCAINE,
            Substance.ETG,
            Substance.FENTANYL,
            Substance.MDMA,
            Substance.METHADONE,
            Substance.METHAMPHETAMINES,
            Substance.OPIATES,
            Substance.OXYCODONE,
            Substance.SYNTHETIC_CANNABINOIDS,
            Substance.THC,
            Substance.TRAMADOL,
        }
    ),
    # AMP, BUP, BZO, COC, ETG, FEN, MIT, MTD, OPI, THC
    TestType.PANEL_11_LAB: frozenset(
        {
            Substance.AMPHETAMINES,
            Substance.BENZODIAZEPINES,
            Substance.BUPRENORPHINE,
            Substance.COCAINE,
            Substance.ETG,
            Substance.FENTANYL,
            Substance.KRATOM,
            Substance.METHADONE,
            Substance.OPIATES,
            Substance.THC,
        }
    ),
    # Ethanol (current intoxication), not EtG
    TestType.PANEL_17_SOS_LAB: frozenset(
        {
            Substance.ALCOHOL,
            Substance.AMPHETAMINES,
            Substance.BARBITURATES,
            Substance.BENZODIAZEPINES,
            Substance.BUPRENORPHINE,
            Substance.COCAINE,
            Substance.MDMA,
            Substance.METHADONE,
            Substance.OPIATES,
            Substance.OXYCODONE,
            Substance.PCP,
            Substance.PROPOXYPHENE,
            Substance.THC,
            Substance.TRICYCLIC_ANTIDEPRESSANTS,
        }
    ),
    TestType.ETG_LAB: frozenset({Substance.ETG}),
}

DETECTABLE_SUBSTANCES = frozenset(s for s in Substance if s != Substance.NONE)


def parse_substance(value) -> Substance:
    """
    Boundary coercion for a single substance code.
    Unknown codes raise ValueError; nothing is silently mapped to a default.
    """
    if isinstance(value, Substance):
        return value
    try:
        return Substance(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown substance code: {value!r}")


def parse_substances(values: Iterable | None) -> frozenset[Substance]:
    return frozenset(parse_substance(v) for v in (values or []))


def parse_test_type(value) -> TestType | None:
    if value is None or value == "":
        return None
    if isinstance(value, TestType):
        return value
    try:
        return TestType(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Unknown test type: {value!r}")


def panel_substances(test_type=None) -> frozenset[Substance]:
    """
    Substances a panel actually screens for.
    No test type => every detectable substance.
    """
    tt = parse_test_type(test_type)
    if tt is None:
        return DETECTABLE_SUBSTANCES
    return PANEL_SUBSTANCES[tt]


def substance_label(code, *, simple: bool = False) -> str:
    s = parse_substance(code)
    if simple and s in SIMPLE_LABELS:
        return SIMPLE_LABELS[s]
    return s.label


def substance_labels(codes: Iterable, *, simple: bool = False) -> list[str]:
    return [substance_label(c, simple=simple) for c in codes]
