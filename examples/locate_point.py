from heliopick import load_image_entry, to_heliographic, OFF_DISK

entry = load_image_entry("./images/hmi_20140101_235959.png")

for x, y in [(512, 512), (700, 380), (1010, 512)]:
    res = to_heliographic((x, y), entry.geometry)
    if res is OFF_DISK:
        print(f"({x}, {y}) is off the disk")
    else:
        print(f"({x}, {y}) -> lon={res.longitude_deg:.2f} lat={res.latitude_deg:.2f} rho={res.rho:.3f}")
