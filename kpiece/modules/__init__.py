"""Economy modules: rarity, gacha, cooldown, progression, economy, accrual, world."""
