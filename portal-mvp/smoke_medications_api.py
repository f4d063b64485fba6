#!/usr/bin/env python3
"""
Medications API 手动冒烟脚本

使用方法:
1. 确保Django服务器正在运行: python manage.py runserver
2. 运行此脚本: python smoke_medications_api.py <patient_id>
"""

import sys

import requests

# API配置
BASE_URL = "http://localhost:8000/api"


def print_tab(patient_id, tab):
    url = f"{BASE_URL}/patients/{patient_id}/medications/"
    response = requests.get(url, params={"tab": tab})
    print(f"\nGET {response.url} → {response.status_code}")

    data = response.json()
    if "error" in data:
        print(f"⚠️  加载失败: {data['error']['message']}")

    print(f"计数: {data.get('counts')}")
    for med in data.get("medications", []):
        print(f"  - {med['name']} {med['dosage']} ({med['status']}) "
              f"{med['prescription_period']} · 处方医生: {med['prescribed_by_name']}")
    return data


def check_action(patient_id, medication_id, action):
    url = f"{BASE_URL}/patients/{patient_id}/medications/{medication_id}/actions/"
    response = requests.post(url, json={"action": action})
    print(f"\nPOST {url} action={action} → {response.status_code}")
    print(response.json())


def check_submit(mrn, hospital):
    response = requests.post(f"{BASE_URL}/prescriptions/submit/", json={"mrn": mrn, "hospital": hospital})
    print(f"\nPOST /prescriptions/submit/ mrn={mrn!r} hospital={hospital!r} → {response.status_code}")
    print(response.json())


def main():
    if len(sys.argv) < 2:
        print("用法: python smoke_medications_api.py <patient_id>")
        sys.exit(1)

    patient_id = sys.argv[1]

    print("\n" + "="*60)
    print(f"患者 {patient_id} 的处方")
    print("="*60)

    try:
        active = print_tab(patient_id, "active")
        print_tab(patient_id, "suspended")
        print_tab(patient_id, "history")

        # 未知 action 应该是 400，且不会写库
        if active.get("medications"):
            check_action(patient_id, active["medications"][0]["id"], "teleport")

        check_submit("", "City Hospital")
        check_submit("M1", "City Hospital")

    except requests.exceptions.ConnectionError:
        print("\n❌ 连接错误: 无法连接到服务器")
        print("请确保Django服务器正在运行: python manage.py runserver")
        sys.exit(1)

    print("\n" + "="*60)
    print("完成")
    print("="*60)


if __name__ == "__main__":
    main()
