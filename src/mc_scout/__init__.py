"""Territory exploration scheduling and waypoint navigation for Minecraft worlds."""
