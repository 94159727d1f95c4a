"""Column layout of the NYPD Shooting Incident extract."""

# Socrata "NYPD Shooting Incident Data (Historic)" column names, lower-cased.
SHOOTING_COLUMNS = [
    "incident_key",
    "occur_date",
    "occur_time",
    "boro",
    "precinct",
    "jurisdiction_code",
    "location_desc",
    "statistical_murder_flag",
    "perp_age_group",
    "perp_sex",
    "perp_race",
    "vic_age_group",
    "vic_sex",
    "vic_race",
    "x_coord_cd",
    "y_coord_cd",
    "latitude",
    "longitude",
]

REQUIRED_COLUMNS = [
    "incident_key",
    "occur_date",
    "occur_time",
    "boro",
    "latitude",
    "longitude",
]

DATE_FORMAT = "%m/%d/%Y"
TIME_FORMAT = "%H:%M:%S"
