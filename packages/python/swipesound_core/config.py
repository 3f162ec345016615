DEEZER_API_URL = "https://api.deezer.com"

# Reserved chart id meaning "all genres"; used for the last-resort unfiltered pull.
ALL_GENRES_ID = 0

# Fixed catalog taxonomy (Deezer genre ids) sampled by the feed.
GENRE_TAXONOMY: dict[int, str] = {
    132: "Pop",
    116: "Rap/Hip Hop",
    152: "Rock",
    113: "Dance",
    165: "R&B",
    85: "Alternative",
    106: "Electro",
    466: "Folk",
}

TABLE_INTERACTIONS = "interactions"
TABLE_PREFS = "user_preferences"
