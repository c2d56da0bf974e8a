"""Placeholder homepage content served while the database is unreachable"""

PLACEHOLDER_TESTIMONIALS = [
    {
        "id": 1,
        "name": "Ahmad Fauzi",
        "role": "Orang Tua Siswa",
        "content": "SMPTI Baituljannah telah mengubah pengalaman belajar anak kami. "
                   "Program-programnya terstruktur dengan baik dan para pengajar sangat berkualitas.",
        "image": "/img/testimonials/1.png",
        "rating": 5,
        "is_active": True,
        "display_order": 1,
    },
    {
        "id": 2,
        "name": "Siti Aminah",
        "role": "Alumni Program Tahfidz",
        "content": "Pendekatan belajar yang interaktif dan proyek praktik membantu saya "
                   "memahami materi dengan lebih baik.",
        "image": "/img/testimonials/2.png",
        "rating": 5,
        "is_active": True,
        "display_order": 2,
    },
    {
        "id": 3,
        "name": "Rizki Pratama",
        "role": "Siswa Kelas IX",
        "content": "Fasilitas laboratorium komputer dan materi teknologi informasinya "
                   "selalu mengikuti perkembangan terbaru.",
        "image": "/img/testimonials/3.png",
        "rating": 4,
        "is_active": True,
        "display_order": 3,
    },
]

PLACEHOLDER_SLIDERS = [
    {
        "id": 1,
        "title": "Selamat Datang di SMPIT Baituljannah",
        "subtitle": "Sekolah Islam Terpadu berbasis Teknologi Informasi",
        "image": "/img/slider/1.jpg",
        "link_url": "/daftar-siswa",
        "link_text": "Daftar Sekarang",
        "is_active": True,
        "display_order": 1,
    },
    {
        "id": 2,
        "title": "Program Tahfidz & Sains",
        "subtitle": "Membentuk generasi Qur'ani yang unggul dalam ilmu pengetahuan",
        "image": "/img/slider/2.jpg",
        "link_url": "/konsultasi",
        "link_text": "Konsultasi",
        "is_active": True,
        "display_order": 2,
    },
]
