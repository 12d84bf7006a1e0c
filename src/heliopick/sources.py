"""Helioviewer sourceId values for commonly used instruments."""

SOURCE_IDS = {
    "SDO_AIA_94": 8,
    "SDO_AIA_131": 9,
    "SDO_AIA_171": 10,
    "SDO_AIA_193": 11,
    "SDO_AIA_211": 12,
    "SDO_AIA_304": 13,
    "SDO_AIA_335": 14,
    "SDO_AIA_1600": 15,
    "SDO_AIA_1700": 16,
    "SDO_AIA_4500": 17,
    "SDO_HMI_continuum": 18,
    "SDO_HMI_magnetogram": 19,
}
