from typing import Dict, Tuple

UNKNOWN_CATEGORIES: Tuple[str, str] = ("Unknown", "Other")

# (primary, secondary) tags for the COCO label set
CATEGORY_MAP: Dict[str, Tuple[str, str]] = {
    "person": ("Human", "Common"),
    "bicycle": ("Vehicle", "Common"),
    "car": ("Vehicle", "Common"),
    "motorcycle": ("Vehicle", "Common"),
    "airplane": ("Vehicle", "Transport"),
    "bus": ("Vehicle", "Transport"),
    "train": ("Vehicle", "Transport"),
    "truck": ("Vehicle", "Transport"),
    "boat": ("Vehicle", "Transport"),
    "traffic light": ("Street", "Common"),
    "fire hydrant": ("Street", "Common"),
    "stop sign": ("Street", "Sign"),
    "parking meter": ("Street", "Common"),
    "bench": ("Furniture", "Common"),
    "bird": ("Animal", "Wildlife"),
    "cat": ("Animal", "Pet"),
    "dog": ("Animal", "Pet"),
    "horse": ("Animal", "Wildlife"),
    "sheep": ("Animal", "Wildlife"),
    "cow": ("Animal", "Wildlife"),
    "elephant": ("Animal", "Wildlife"),
    "bear": ("Animal", "Wildlife"),
    "zebra": ("Animal", "Wildlife"),
    "giraffe": ("Animal", "Wildlife"),
    "backpack": ("Accessory", "Common"),
    "umbrella": ("Accessory", "Common"),
    "handbag": ("Accessory", "Fashion"),
    "tie": ("Clothing", "Fashion"),
    "suitcase": ("Accessory", "Travel"),
    "frisbee": ("Sports", "Recreation"),
    "skis": ("Sports", "Winter"),
    "snowboard": ("Sports", "Winter"),
    "sports ball": ("Sports", "Recreation"),
    "kite": ("Sports", "Recreation"),
    "baseball bat": ("Sports", "Recreation"),
    "baseball glove": ("Sports", "Recreation"),
    "skateboard": ("Sports", "Recreation"),
    "surfboard": ("Sports", "Water"),
    "tennis racket": ("Sports", "Recreation"),
    "bottle": ("Container", "Common"),
    "wine glass": ("Kitchenware", "Dining"),
    "cup": ("Kitchenware", "Dining"),
    "fork": ("Kitchenware", "Dining"),
    "knife": ("Kitchenware", "Dining"),
    "spoon": ("Kitchenware", "Dining"),
    "bowl": ("Kitchenware", "Dining"),
    "banana": ("Food", "Fruit"),
    "apple": ("Food", "Fruit"),
    "sandwich": ("Food", "Meal"),
    "orange": ("Food", "Fruit"),
    "broccoli": ("Food", "Vegetable"),
    "carrot": ("Food", "Vegetable"),
    "hot dog": ("Food", "Meal"),
    "pizza": ("Food", "Meal"),
    "donut": ("Food", "Dessert"),
    "cake": ("Food", "Dessert"),
    "chair": ("Furniture", "Common"),
    "couch": ("Furniture", "Common"),
    "potted plant": ("Plant", "Decor"),
    "bed": ("Furniture", "Common"),
    "dining table": ("Furniture", "Common"),
    "toilet": ("Bathroom", "Fixture"),
    "tv": ("Electronics", "Entertainment"),
    "laptop": ("Electronics", "Computing"),
    "mouse": ("Electronics", "Computing"),
    "remote": ("Electronics", "Control"),
    "keyboard": ("Electronics", "Computing"),
    "cell phone": ("Electronics", "Communication"),
    "microwave": ("Appliance", "Kitchen"),
    "oven": ("Appliance", "Kitchen"),
    "toaster": ("Appliance", "Kitchen"),
    "sink": ("Fixture", "Kitchen"),
    "refrigerator": ("Appliance", "Kitchen"),
    "book": ("Stationery", "Reading"),
    "clock": ("Decor", "Timepiece"),
    "vase": ("Decor", "Container"),
    "scissors": ("Tool", "Cutting"),
    "teddy bear": ("Toy", "Stuffed"),
    "hair drier": ("Appliance", "Bathroom"),
    "toothbrush": ("Bathroom", "Hygiene"),
}


def categories_for(label: str) -> Tuple[str, str]:
    return CATEGORY_MAP.get(label.strip().lower(), UNKNOWN_CATEGORIES)
