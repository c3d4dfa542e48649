"""Block orchestration, settlement and bid replay."""
