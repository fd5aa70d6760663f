"""Region Table — static prefecture directory and adjacency edges.

Invariants:
    - 47 regions, ordered by JIS code; this order drives cluster seeding
    - Every adjacency pair references two known codes, lower code first
    - Pure data: no logic lives here (see region_catalog.py)
"""

# (code, name, broader grouping)
REGIONS: tuple[tuple[str, str, str], ...] = (
    ("01", "Hokkaido", "Hokkaido"),
    ("02", "Aomori", "Tohoku"),
    ("03", "Iwate", "Tohoku"),
    ("04", "Miyagi", "Tohoku"),
    ("05", "Akita", "Tohoku"),
    ("06", "Yamagata", "Tohoku"),
    ("07", "Fukushima", "Tohoku"),
    ("08", "Ibaraki", "Kanto"),
    ("09", "Tochigi", "Kanto"),
    ("10", "Gunma", "Kanto"),
    ("11", "Saitama", "Kanto"),
    ("12", "Chiba", "Kanto"),
    ("13", "Tokyo", "Kanto"),
    ("14", "Kanagawa", "Kanto"),
    ("15", "Niigata", "Chubu"),
    ("16", "Toyama", "Chubu"),
    ("17", "Ishikawa", "Chubu"),
    ("18", "Fukui", "Chubu"),
    ("19", "Yamanashi", "Chubu"),
    ("20", "Nagano", "Chubu"),
    ("21", "Gifu", "Chubu"),
    ("22", "Shizuoka", "Chubu"),
    ("23", "Aichi", "Chubu"),
    ("24", "Mie", "Kinki"),
    ("25", "Shiga", "Kinki"),
    ("26", "Kyoto", "Kinki"),
    ("27", "Osaka", "Kinki"),
    ("28", "Hyogo", "Kinki"),
    ("29", "Nara", "Kinki"),
    ("30", "Wakayama", "Kinki"),
    ("31", "Tottori", "Chugoku"),
    ("32", "Shimane", "Chugoku"),
    ("33", "Okayama", "Chugoku"),
    ("34", "Hiroshima", "Chugoku"),
    ("35", "Yamaguchi", "Chugoku"),
    ("36", "Tokushima", "Shikoku"),
    ("37", "Kagawa", "Shikoku"),
    ("38", "Ehime", "Shikoku"),
    ("39", "Kochi", "Shikoku"),
    ("40", "Fukuoka", "Kyushu"),
    ("41", "Saga", "Kyushu"),
    ("42", "Nagasaki", "Kyushu"),
    ("43", "Kumamoto", "Kyushu"),
    ("44", "Oita", "Kyushu"),
    ("45", "Miyazaki", "Kyushu"),
    ("46", "Kagoshima", "Kyushu"),
    ("47", "Okinawa", "Kyushu"),
)

# Main land-border and short-strait neighbours.
ADJACENT_PAIRS: tuple[tuple[str, str], ...] = (
    ("01", "02"), ("02", "03"), ("02", "05"), ("03", "04"), ("04", "05"),
    ("04", "06"), ("04", "07"), ("06", "07"), ("07", "08"), ("07", "09"),
    ("07", "10"), ("08", "09"), ("08", "11"), ("08", "12"), ("09", "10"),
    ("09", "11"), ("10", "11"), ("10", "15"), ("10", "20"), ("11", "12"),
    ("11", "13"), ("12", "13"), ("13", "14"), ("13", "19"), ("14", "19"),
    ("14", "22"), ("15", "16"), ("15", "20"), ("16", "17"), ("16", "21"),
    ("17", "18"), ("17", "21"), ("18", "21"), ("18", "25"), ("18", "26"),
    ("19", "20"), ("19", "22"), ("20", "21"), ("20", "22"), ("20", "23"),
    ("21", "23"), ("21", "24"), ("21", "25"), ("22", "23"), ("23", "24"),
    ("24", "25"), ("24", "26"), ("24", "29"), ("24", "30"), ("25", "26"),
    ("26", "27"), ("26", "28"), ("26", "29"), ("27", "28"), ("27", "29"),
    ("27", "30"), ("28", "31"), ("28", "33"), ("29", "30"), ("31", "32"),
    ("31", "33"), ("32", "33"), ("32", "34"), ("32", "35"), ("33", "34"),
    ("34", "35"), ("34", "38"), ("35", "40"), ("35", "44"), ("36", "37"),
    ("36", "38"), ("36", "39"), ("37", "38"), ("38", "39"), ("38", "44"),
    ("40", "41"), ("40", "43"), ("40", "44"), ("41", "42"), ("41", "43"),
    ("42", "43"), ("43", "44"), ("43", "45"), ("43", "46"), ("44", "45"),
    ("45", "46"),
)
