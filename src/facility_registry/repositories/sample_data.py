from __future__ import annotations

from typing import Any

SAMPLE_FACILITY_DOCUMENTS: tuple[dict[str, Any], ...] = (
    {
        "$id": "fac_001",
        "facilityName": "Baghdad Teaching Hospital",
        "establishmentName": "Medical City",
        "governorate": "Baghdad",
        "facilityStatus": "تعمل",
        "facilityTypeLabel": "hospital",
        "facilityOwner": "ministry of health",
        "facilityAffiliation": "Baghdad Al-Rusafa DOH",
        "longitude": 44.3826,
        "latitude": 33.3455,
        "createdAt": "2024-01-12T09:30:00+00:00",
        "updatedAt": "2024-06-01T12:00:00+00:00",
        "createdBy": "seed",
    },
    {
        "$id": "fac_002",
        "name": "Al-Zubair Primary Health Care Center",
        "governorate": "Basra",
        "STATUS": "تعمل ولكن لا يمكن الوصول اليه بسبب الوضع الأمني",
        "type": "primary health care center",
        "Owner": "MoH",
        "FOLLOWS": "basra doh",
        "X": "47.7034",
        "Y": "30.3892",
        "createdAt": "2024-01-20T08:00:00+00:00",
        "updatedAt": "2024-05-11T10:15:00+00:00",
    },
    {
        "$id": "fac_003",
        "facilityName": "Mosul Field Clinic",
        "establishmentName": "Nineveh Relief Network",
        "governorate": "Nineveh",
        "facilityStatus": "متوقفة جزئياً",
        "facilityTypeLabel": "Field Clinic",
        "facilityOwner": "international ngo",
        "facilityAffiliation": "WHO",
        "location": {"type": "Point", "coordinates": [43.1189, 36.3400]},
        "createdAt": "2024-02-03T11:45:00+00:00",
        "updatedAt": "2024-04-22T07:05:00+00:00",
    },
    {
        "$id": "fac_004",
        "facilityName": "Ramadi General Hospital",
        "governorate": "Anbar",
        "facilityStatus": "لا تعمل",
        "facilityTypeLabel": "HOSPITAL",
        "facilityOwner": "Ministry Of Health",
        "facilityAffiliation": "anbar doh",
        "longitude": 43.3047,
        "latitude": 33.4258,
        "createdAt": "2024-02-17T13:00:00+00:00",
        "updatedAt": "2024-03-30T16:40:00+00:00",
    },
    {
        "$id": "fac_005",
        "facilityName": "Erbil Family Clinic",
        "governorate": "Erbil",
        "facilityStatus": "active",
        "facilityTypeLabel": "clinic",
        "facilityOwner": "private sector",
        "facilityAffiliation": "",
        "longitude": "44.0092",
        "latitude": "36.1911",
        "updatedAt": "2024-05-02T09:00:00+00:00",
    },
    {
        "$id": "fac_006",
        "name": "Karkh Mobile Medical Unit",
        "governorate": "Baghdad",
        "STATUS": "تعمل بشكل جزئي",
        "type": "mobile medical unit",
        "Owner": "Iraqi Red Crescent Organization",
        "FOLLOWS": "IRCS",
        "X": "not recorded",
        "Y": "",
        "createdAt": "2024-03-08T06:20:00+00:00",
        "updatedAt": "2024-03-08T06:20:00+00:00",
    },
    {
        "$id": "fac_007",
        "facilityName": "Tal Afar Health Post",
        "governorate": "Nineveh",
        "facilityStatus": "under rehabilitation",
        "facilityTypeLabel": "health post",
        "facilityOwner": "community",
        "facilityAffiliation": "nineveh doh",
        "longitude": 42.4507,
        "latitude": 36.3745,
        "createdAt": "2024-03-19T10:10:00+00:00",
        "updatedAt": "2024-03-21T10:10:00+00:00",
    },
    {
        "$id": "fac_008",
        "facilityName": "Abu Al-Khaseeb Maternity Hospital",
        "governorate": "Basra",
        "facilityStatus": "suspended",
        "facilityTypeLabel": "maternity hospital",
        "facilityOwner": "ministry of health",
        "facilityAffiliation": "basra doh",
        "longitude": 47.9731,
        "latitude": 30.4527,
        "createdAt": "2024-04-02T15:30:00+00:00",
        "updatedAt": "2024-04-02T15:30:00+00:00",
    },
    {
        "$id": "fac_009",
        "facilityName": "Soran Outreach Health Post",
        "governorate": "Erbil",
        "facilityTypeLabel": "health post",
        "facilityOwner": "private sector",
        "facilityAffiliation": "erbil doh",
        "createdAt": "2024-03-25T10:00:00+00:00",
        "updatedAt": "2024-03-25T10:00:00+00:00",
    },
)
