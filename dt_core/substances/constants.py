# backend/dt_core/substances/constants.py
from django.db import models


class Substance(models.TextChoices):
    SIX_MAM = "6-mam", "6-MAM (Heroin)"
    ALCOHOL = "alcohol", "Alcohol (Ethanol)"
    AMPHETAMINES = "amphetamines", "Amphetamines"
    BARBITURATES = "barbiturates", "Barbiturates"
    BENZODIAZEPINES = "benzodiazepines", "Benzodiazepines"
    BUPRENORPHINE = "buprenorphine", "Buprenorphine"
    COCAINE = "cocaine", "Cocaine"
    ETG = "etg", "EtG (Alcohol)"
    FENTANYL = "fentanyl", "Fentanyl"
    KRATOM = "kratom", "Kratom"
    MDMA = "mdma", "MDMA (Ecstasy)"
    METHADONE = "methadone", "Methadone"
    METHAMPHETAMINES = "methamphetamines", "Methamphetamines"
    OPIATES = "opiates", "Opiates"
    OXYCODONE = "oxycodone", "Oxycodone"
    PCP = "pcp", "PCP"
    PROPOXYPHENE = "propoxyphene", "Propoxyphene"
    SYNTHETIC_CANNABINOIDS = "synthetic_cannabinoids", "Synthetic Cannabinoids"
    THC = "thc", "THC"
    TRAMADOL = "tramadol", "Tramadol"
    TRICYCLIC_ANTIDEPRESSANTS = "tricyclic_antidepressants", "Tricyclic Antidepressants"

    # Medication "detected as" only: the medication never shows on a panel.
    NONE = "none", "Does Not Show"


class TestType(models.TextChoices):
    PANEL_15_INSTANT = "15-panel-instant", "15-Panel Instant"
    PANEL_11_LAB = "11-panel-lab", "11-Panel Lab"
    PANEL_17_SOS_LAB = "17-panel-sos-lab", "17-Panel SOS Lab"
    ETG_LAB = "etg-lab", "EtG Lab"

    # keep pytest from collecting this enum as a test class
    __test__ = False


class ScreeningStatus(models.TextChoices):
    COLLECTED = "collected", "Collected"
    SCREENED = "screened", "Screened"
    CONFIRMATION_PENDING = "confirmation-pending", "Confirmation Pending"
    COMPLETE = "complete", "Complete"


# Simplified names used in client-facing copy
SIMPLE_LABELS = {
    Substance.SIX_MAM: "Heroin",
    Substance.ETG: "Alcohol",
}
