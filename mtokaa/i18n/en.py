TEXTS_EN = {
    # --- Common ---
    "welcome": "👋 Welcome to <b>MtokaaHero</b>, {name}!\n\nFind garages, mechanics and spare-parts shops near you.",
    "main_menu": "🏠 Main menu",
    "select_action": "Choose an option below:",
    "rate_limit": "⏳ Please wait a moment…",
    "error_generic": "⚠️ Something went wrong. Please try again.",

    # --- Main menu buttons ---
    "btn_nearby": "📍 Nearby services",
    "btn_featured": "⭐ Featured near me",
    "btn_density": "📊 Services in my area",
    "btn_my_location": "🧭 My location",
    "btn_live_on": "📡 Live updates on",
    "btn_live_off": "🔕 Live updates off",
    "btn_forget_location": "🗑 Forget my location",

    # --- Location acquisition ---
    "share_location": (
        "📍 Share your location so we can find services around you.\n\n"
        "Tap the button below, or choose <b>Enter manually</b> to pick a city."
    ),
    "share_location_btn": "📍 Share location",
    "enter_manually_btn": "✍️ Enter manually",
    "location_received": "✅ Location set: <b>{place}</b>",
    "location_denied": "🙅 No problem. Pick the city closest to you:",
    "location_timeout": "⌛ We didn't receive a location in time. Pick the city closest to you:",
    "location_unavailable": "📡 Your location couldn't be determined. Pick the city closest to you:",
    "choose_city": "🏙 Pick the city closest to you:",
    "no_location_yet": "🧭 We don't have your location yet. Use <b>📍 Nearby services</b> to share it.",
    "my_location": "🧭 <b>Your location</b>\n{place}\n\nSaved {age} ago, kept for one hour.",
    "location_forgotten": "🗑 Your saved location was removed.",
    "live_started": (
        "📡 Live updates are on. Share a <b>live location</b> in this chat and "
        "we'll keep your position current."
    ),
    "live_stopped": "🔕 Live updates are off.",
    "live_update": "📡 Position updated: <b>{place}</b>",
    "invalid_location": "⚠️ That location doesn't look valid. Please try again.",

    # --- Nearby search ---
    "choose_radius": "📏 Searching around <b>{place}</b>.\nHow far should we look?",
    "radius_btn": "{km} km",
    "choose_type": "🔧 What are you looking for?",
    "type_all": "🔎 Everything",
    "type_garage": "🏭 Garages",
    "type_mechanic": "🧰 Mechanics",
    "type_parts": "⚙️ Spare parts",
    "choose_sort": "↕️ Sort results by:",
    "sort_distance": "📍 Distance",
    "sort_rating": "⭐ Rating",
    "sort_reviews": "💬 Reviews",
    "no_results": "😕 Nothing found within {km} km. Try a wider radius.",
    "results_title": "🔎 <b>{count} result(s)</b> within {km} km of {place}",
    "tier_nearby": "🟢 <b>Nearby</b> (under 5 km)",
    "tier_moderate": "🟡 <b>A short drive</b> (5–15 km)",
    "tier_far": "🔴 <b>Further away</b> (15 km+)",
    "result_line": "• {name}: {distance}, ~{travel} by car, ⭐ {rating} ({reviews})",

    # --- Featured ---
    "featured_title": "⭐ <b>Featured businesses</b>",
    "featured_title_near": "⭐ <b>Featured businesses near {place}</b>",
    "featured_line": "• {name} ({type}), ⭐ {rating} ({reviews}){distance}",
    "featured_empty": "No featured businesses yet.",

    # --- Text search ---
    "search_usage": "🔎 Usage: /search &lt;what you need&gt;, e.g. <code>/search brakes</code>",
    "search_title": "🔎 <b>Results for \"{query}\"</b>",
    "search_line": "• {title} at {business}{distance}",
    "search_empty": "😕 Nothing matches \"{query}\".",

    # --- Density ---
    "density": (
        "📊 <b>Within {km} km of {place}</b>\n\n"
        "Total: <b>{total}</b>\n"
        "🏭 Garages: {garage}\n"
        "🧰 Mechanics: {mechanic}\n"
        "⚙️ Spare parts: {parts}\n"
        "📏 Average distance: {average}"
    ),

    # --- Business card ---
    "business_card": (
        "🏷 <b>{name}</b>\n"
        "{type} · ⭐ {rating} ({reviews} reviews)\n"
        "📍 {address}\n"
        "📞 {phone}\n"
        "{description}"
    ),
    "card_services": "\n🔧 <b>Services</b>\n{items}",
    "card_products": "\n📦 <b>Products</b>\n{items}",
    "card_reviews": "\n💬 <b>Recent reviews</b>\n{items}",
    "card_distance": "\n🚗 {distance} away · ~{driving} by car · ~{walking} on foot",
    "btn_show_on_map": "🗺 Show on map",
    "btn_rate": "⭐ Rate",
    "btn_back_to_results": "◀️ Back to results",
    "no_location_data": "📍 This business hasn't pinned its location yet.",
    "business_not_found": "This business is no longer listed.",

    # --- Rating ---
    "rate_prompt": "⭐ How would you rate <b>{name}</b>?",
    "rate_comment_prompt": "💬 Want to add a short comment? Send it now, or tap Skip.",
    "btn_skip": "⏭ Skip",
    "rate_thank_you": "🙏 Thanks for your review!",
    "already_rated": "You have already reviewed this business.",

    # --- Admin ---
    "admin_stats": "📊 Businesses: {total} (listed: {listed})",
    "admin_verified": "✅ Business {business_id} verified.",
    "admin_usage_verify": "Usage: /verify &lt;business_id&gt;",

    "business_types": {
        "garage": "Garage",
        "mechanic": "Mechanic",
        "parts": "Parts shop",
    },
}
