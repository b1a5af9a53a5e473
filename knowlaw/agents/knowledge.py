"""Canned Egyptian-law answers used by the static responder.

``KEYWORDS`` is ordered: the first keyword found in the lowercased message
decides the topic, so more specific topics must come before generic ones
("contract" before "legal").
"""
from __future__ import annotations

from typing import Dict, Tuple

Paragraphs = Dict[str, str]

TOPICS: Dict[str, Paragraphs] = {
    "constitution": {
        "en": (
            "The Egyptian Constitution of 2014 is the supreme law of Egypt. It establishes Egypt as a "
            "democratic republic, guarantees fundamental rights and freedoms, and defines the structure of "
            "government. Key provisions include: separation of powers, protection of human rights, freedom of "
            "expression, right to education, and social justice. The Constitution can only be amended by a "
            "two-thirds majority vote in Parliament and a public referendum."
        ),
        "ar": (
            "دستور مصر لعام 2014 هو القانون الأعلى في الدولة. يقرر أن مصر جمهورية ديمقراطية، ويكفل الحقوق "
            "والحريات الأساسية، ويحدد تنظيم السلطات العامة. من أهم أحكامه: الفصل بين السلطات، وحماية حقوق "
            "الإنسان، وحرية التعبير، والحق في التعليم، والعدالة الاجتماعية. ولا يجوز تعديل الدستور إلا بموافقة "
            "ثلثي أعضاء مجلس النواب ثم استفتاء شعبي."
        ),
    },
    "egypt": {
        "en": (
            "Egypt operates under a civil law system based on the Egyptian Constitution of 2014. The legal "
            "system includes: Civil Code, Criminal Code, Commercial Code, Labor Law, Personal Status Law, and "
            "various specialized laws. Egyptian courts include: Constitutional Court, Court of Cassation, Courts "
            "of Appeal, Primary Courts, and specialized courts. All laws must comply with the Constitution."
        ),
        "ar": (
            "يقوم النظام القانوني المصري على مدرسة القانون المدني في إطار دستور 2014. ويشمل القانون المدني، "
            "وقانون العقوبات، والقانون التجاري، وقانون العمل، وقوانين الأحوال الشخصية، وعددا من القوانين "
            "الخاصة. ومن المحاكم المصرية: المحكمة الدستورية العليا، ومحكمة النقض، ومحاكم الاستئناف، والمحاكم "
            "الابتدائية، والمحاكم المتخصصة. ويجب أن تتفق جميع القوانين مع الدستور."
        ),
    },
    "tenant": {
        "en": (
            "Under Egyptian Law No. 4 of 1996 (Old Rent Law) and Law No. 199 of 2021 (New Rent Law), tenants "
            "have rights including: protection from arbitrary eviction, right to habitable premises, and proper "
            "notice requirements. The Old Rent Law applies to contracts before 2001 with rent control. New "
            "contracts follow market rates. Eviction requires a court order and valid reasons such as "
            "non-payment, breach of contract, or the owner's need for personal use."
        ),
        "ar": (
            "وفقا للقانون رقم 4 لسنة 1996 والقانون رقم 199 لسنة 2021، يتمتع المستأجر بحقوق منها: الحماية من "
            "الإخلاء التعسفي، والحق في عين صالحة للسكن، ووجوب الإخطار المسبق. وتخضع عقود الإيجار القديم "
            "السابقة على 2001 لتحديد الأجرة، أما العقود الجديدة فتخضع لأسعار السوق. ولا يتم الإخلاء إلا بحكم "
            "قضائي ولسبب مشروع مثل عدم سداد الأجرة أو مخالفة العقد أو حاجة المالك الشخصية."
        ),
    },
    "rent": {
        "en": (
            "Egyptian rent law distinguishes between old rent (pre-2001) and new rent contracts. Old rent "
            "contracts are subject to rent control and can only be increased by specific percentages set by "
            "law. New rent contracts (Law 199/2021) follow market rates. Rent increases must be agreed upon in "
            "the contract or follow legal procedures. Disputes are resolved through Real Estate Rental Dispute "
            "Committees or courts."
        ),
        "ar": (
            "يفرق القانون المصري بين عقود الإيجار القديم السابقة على 2001 وعقود الإيجار الجديد. تخضع العقود "
            "القديمة لتحديد الأجرة ولا تزيد إلا بالنسب التي يحددها القانون، بينما تتبع العقود الجديدة "
            "(القانون 199 لسنة 2021) أسعار السوق. ويجب أن تكون زيادة الأجرة متفقا عليها في العقد أو وفق "
            "الإجراءات القانونية، وتنظر المنازعات أمام لجان فض منازعات الإيجار أو المحاكم."
        ),
    },
    "complaint": {
        "en": (
            "In Egypt, to file a legal complaint: 1) Determine the appropriate court (Primary Court for civil "
            "matters, Criminal Court for crimes), 2) Prepare a written complaint (da'wa) with facts and evidence, "
            "3) File at the court clerk's office with required documents, 4) Pay court fees (varies by case "
            "value), 5) Serve the complaint to the defendant through the court bailiff. Egyptian courts follow "
            "civil law procedures. Consider consulting an Egyptian lawyer as procedures can be complex."
        ),
        "ar": (
            "لتقديم شكوى أو دعوى في مصر: 1) حدد المحكمة المختصة (المحكمة الابتدائية في المسائل المدنية، "
            "والمحاكم الجنائية في الجرائم)، 2) أعد صحيفة دعوى مكتوبة بالوقائع والمستندات، 3) أودعها قلم كتاب "
            "المحكمة مع المستندات المطلوبة، 4) سدد الرسوم القضائية حسب قيمة الدعوى، 5) أعلن الخصم عن طريق "
            "المحضرين. وننصح باستشارة محام مصري لأن الإجراءات قد تكون معقدة."
        ),
    },
    "lawsuit": {
        "en": (
            "In Egyptian law, before filing a lawsuit (da'wa), consider: 1) Whether you have a valid claim under "
            "the Egyptian Civil Code, 2) Statute of limitations (usually 15 years for contracts, 3 years for "
            "torts), 3) Whether mediation or settlement is possible, 4) Court fees and lawyer costs, 5) Whether "
            "you have sufficient evidence. Cases start in Primary Courts, can be appealed to Courts of Appeal, "
            "and finally to the Court of Cassation. Consult an Egyptian lawyer for specific advice."
        ),
        "ar": (
            "قبل رفع دعوى في القانون المصري راجع: 1) وجود حق ثابت وفق القانون المدني، 2) مدد التقادم (15 سنة "
            "غالبا للعقود و3 سنوات للمسؤولية التقصيرية)، 3) إمكانية الصلح أو التسوية الودية، 4) الرسوم "
            "القضائية وأتعاب المحاماة، 5) كفاية الأدلة. تبدأ الدعوى أمام المحكمة الابتدائية ثم الاستئناف ثم "
            "محكمة النقض. استشر محاميا مصريا للحصول على نصيحة خاصة بحالتك."
        ),
    },
    "civil": {
        "en": (
            "The Egyptian Civil Code (Law 131/1948) governs private disputes between individuals and "
            "organizations. It covers contracts, property, torts, and obligations. Civil cases are heard in "
            "Primary Courts, with appeals to Courts of Appeal and the Court of Cassation. The Code is based on "
            "French civil law principles adapted to the Egyptian context. Key areas: contract formation, breach "
            "of contract, property rights, and compensation for damages."
        ),
        "ar": (
            "ينظم القانون المدني المصري (القانون 131 لسنة 1948) المعاملات والمنازعات الخاصة بين الأفراد "
            "والجهات، ويشمل العقود والملكية والمسؤولية التقصيرية والالتزامات. تنظر الدعاوى المدنية أمام "
            "المحاكم الابتدائية ويطعن فيها أمام الاستئناف ثم النقض. ومن أهم موضوعاته: إبرام العقود، والإخلال "
            "بها، وحقوق الملكية، والتعويض عن الأضرار."
        ),
    },
    "criminal": {
        "en": (
            "The Egyptian Penal Code (Law 58/1937) defines crimes and penalties. Crimes are classified as "
            "felonies (serious crimes with severe penalties), misdemeanors (less serious crimes), and violations "
            "(minor offenses). The Public Prosecution investigates and prosecutes crimes. Defendants have "
            "rights including legal representation, the presumption of innocence, and a fair trial. Penalties "
            "range from fines to imprisonment."
        ),
        "ar": (
            "يحدد قانون العقوبات المصري (القانون 58 لسنة 1937) الجرائم وعقوباتها، وتنقسم الجرائم إلى جنايات "
            "وجنح ومخالفات. تتولى النيابة العامة التحقيق والاتهام. وللمتهم حقوق منها: الاستعانة بمحام، وافتراض "
            "البراءة، والمحاكمة العادلة. وتتدرج العقوبات من الغرامة إلى الحبس والسجن."
        ),
    },
    "contract": {
        "en": (
            "Under the Egyptian Civil Code (Articles 89-200), a valid contract requires: 1) Offer and acceptance, "
            "2) Legal capacity of the parties (age 21 or emancipation), 3) A subject matter that is lawful and "
            "possible, 4) A lawful cause. Contracts can be written or oral, but certain contracts (real estate, "
            "long-term employment) must be written. Breach of contract entitles the injured party to damages or "
            "specific performance."
        ),
        "ar": (
            "وفقا للقانون المدني المصري (المواد 89 إلى 200) يشترط لصحة العقد: 1) الإيجاب والقبول، 2) أهلية "
            "الأطراف (21 سنة أو الترشيد)، 3) محل مشروع وممكن، 4) سبب مشروع. ويجوز أن يكون العقد مكتوبا أو "
            "شفهيا، لكن بعض العقود كعقود العقارات يجب أن تكون مكتوبة. ويحق للطرف المضرور عند الإخلال بالعقد "
            "المطالبة بالتعويض أو التنفيذ العيني."
        ),
    },
    "agreement": {
        "en": (
            "In Egyptian law, agreements can be written or oral. However, certain agreements must be in writing: "
            "real estate transactions, long-term employment contracts, commercial agency agreements, and "
            "guarantees. Written agreements are strongly recommended as they provide better evidence. Key "
            "elements: clear terms, mutual consent, lawful purpose, and legal capacity. Always have important "
            "agreements reviewed by an Egyptian lawyer before signing."
        ),
        "ar": (
            "في القانون المصري يجوز أن تكون الاتفاقات مكتوبة أو شفهية، إلا أن بعضها يجب أن يكون مكتوبا مثل "
            "التصرفات العقارية وعقود الوكالة التجارية والكفالة. ويفضل دائما توثيق الاتفاق كتابة لأنه أقوى في "
            "الإثبات. ومن عناصره: وضوح الشروط، والتراضي، ومشروعية الغرض، والأهلية. راجع الاتفاقات المهمة مع "
            "محام مصري قبل التوقيع."
        ),
    },
    "rights": {
        "en": (
            "The Egyptian Constitution of 2014 guarantees fundamental rights including: equality before the law, "
            "freedom of belief and expression, the right to education and healthcare, the right to property, the "
            "right to work, freedom of assembly and association, privacy, and the right to a fair trial. These "
            "rights are protected by the Supreme Constitutional Court. For specific questions about your rights "
            "under Egyptian law, consult an Egyptian constitutional lawyer."
        ),
        "ar": (
            "يكفل دستور 2014 حقوقا أساسية منها: المساواة أمام القانون، وحرية الاعتقاد والتعبير، والحق في "
            "التعليم والرعاية الصحية، وحق الملكية، والحق في العمل، وحرية الاجتماع وتكوين الجمعيات، وحرمة "
            "الحياة الخاصة، والحق في محاكمة عادلة. وتحمي المحكمة الدستورية العليا هذه الحقوق. للأسئلة الخاصة "
            "بحالتك استشر محاميا متخصصا في القانون الدستوري."
        ),
    },
    "lawyer": {
        "en": (
            "In Egypt, you may need a lawyer for: criminal charges, civil lawsuits, commercial disputes, real "
            "estate transactions, family law matters (marriage, divorce, inheritance), labor disputes, "
            "administrative appeals, and drafting legal documents. Lawyers must be registered with the Egyptian "
            "Bar Association. Many lawyers offer initial consultations, and you can book one from the lawyer "
            "directory in this app."
        ),
        "ar": (
            "قد تحتاج إلى محام في مصر في: القضايا الجنائية، والدعاوى المدنية، والمنازعات التجارية، والتصرفات "
            "العقارية، ومسائل الأحوال الشخصية كالزواج والطلاق والميراث، ومنازعات العمل، والطعون الإدارية، "
            "وصياغة المستندات القانونية. ويجب أن يكون المحامي مقيدا بنقابة المحامين. ويمكنك حجز استشارة مع "
            "محام من دليل المحامين في التطبيق."
        ),
    },
    "legal": {
        "en": (
            "Egyptian legal matters are governed by the Constitution of 2014 and various codes: Civil Code, "
            "Penal Code, Commercial Code, Labor Law, Personal Status Law, and specialized laws. While I can "
            "provide general information about Egyptian law, specific legal advice should come from a licensed "
            "Egyptian attorney registered with the Bar Association. For urgent matters, contact a lawyer or a "
            "legal aid organization immediately."
        ),
        "ar": (
            "تخضع المسائل القانونية في مصر لدستور 2014 ومجموعة من القوانين: القانون المدني، وقانون العقوبات، "
            "والقانون التجاري، وقانون العمل، وقوانين الأحوال الشخصية، والقوانين الخاصة. يمكنني تقديم معلومات "
            "عامة، أما النصيحة القانونية الخاصة فيجب أن تكون من محام مقيد بنقابة المحامين. وفي الحالات العاجلة "
            "تواصل مع محام أو جهة مساعدة قانونية فورا."
        ),
    },
}

KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("constitution", "constitution"),
    ("دستور", "constitution"),
    ("مصر", "egypt"),
    ("egyptian", "egypt"),
    ("tenant", "tenant"),
    ("rent", "rent"),
    ("إيجار", "rent"),
    ("مستأجر", "tenant"),
    ("complaint", "complaint"),
    ("شكوى", "complaint"),
    ("sue", "lawsuit"),
    ("دعوى", "lawsuit"),
    ("civil", "civil"),
    ("مدني", "civil"),
    ("criminal", "criminal"),
    ("جنائي", "criminal"),
    ("contract", "contract"),
    ("عقد", "contract"),
    ("agreement", "agreement"),
    ("اتفاق", "agreement"),
    ("rights", "rights"),
    ("حقوق", "rights"),
    ("lawyer", "lawyer"),
    ("محامي", "lawyer"),
    ("محام", "lawyer"),
    ("legal", "legal"),
    ("قانوني", "legal"),
)

GREETING_KEYWORDS = ("hello", "hi", "hey", "مرحبا", "السلام", "أهلا")
THANKS_KEYWORDS = ("thank", "شكر", "مشكور")
HELP_KEYWORDS = ("help", "مساعدة")

INTENTS: Dict[str, Paragraphs] = {
    "greeting": {
        "en": (
            "Hello! I'm your AI Legal Assistant specialized in Egyptian law. I'm here to help you understand the "
            "Egyptian Constitution and Egyptian laws, and answer questions about your rights under Egyptian law. "
            "What Egyptian legal question can I help you with today?"
        ),
        "ar": (
            "مرحبا! أنا مساعدك القانوني المتخصص في القانون المصري. أستطيع مساعدتك في فهم الدستور المصري "
            "والقوانين المصرية والإجابة عن أسئلتك حول حقوقك. ما السؤال القانوني الذي يمكنني مساعدتك فيه اليوم؟"
        ),
    },
    "thanks": {
        "en": (
            "You're welcome! If you have any other questions about Egyptian law or the Egyptian Constitution, "
            "feel free to ask. For specific legal advice, it's always best to consult a qualified Egyptian "
            "attorney registered with the Egyptian Bar Association."
        ),
        "ar": (
            "على الرحب والسعة! إذا كانت لديك أسئلة أخرى عن القانون المصري أو الدستور فلا تتردد في السؤال. "
            "وللحصول على نصيحة قانونية خاصة يفضل دائما استشارة محام مقيد بنقابة المحامين."
        ),
    },
    "help": {
        "en": (
            "I can help you with questions about Egyptian law and the Egyptian Constitution, including: the "
            "Constitution of 2014, the Civil Code, the Penal Code, rent law, contracts, tenant rights, filing "
            "complaints in Egyptian courts, the court system, and your constitutional rights. What would you "
            "like to know about Egyptian law?"
        ),
        "ar": (
            "يمكنني مساعدتك في أسئلة القانون المصري والدستور، ومنها: دستور 2014، والقانون المدني، وقانون "
            "العقوبات، وقوانين الإيجار، والعقود، وحقوق المستأجر، وتقديم الشكاوى أمام المحاكم، والنظام "
            "القضائي، وحقوقك الدستورية. ماذا تريد أن تعرف؟"
        ),
    },
    "fallback": {
        "en": (
            "I understand you're asking about Egyptian legal matters. While I can provide general information "
            "about Egyptian law and the Egyptian Constitution, it helps if you are more specific. For example, "
            "you could ask about: the Egyptian Constitution, the Civil Code, rent law, contracts under Egyptian "
            "law, or how to file a lawsuit in Egyptian courts. For advice tailored to your situation, please "
            "consult a qualified Egyptian attorney registered with the Egyptian Bar Association."
        ),
        "ar": (
            "أفهم أن سؤالك يتعلق بمسألة قانونية مصرية. يمكنني تقديم معلومات عامة عن القانون المصري والدستور، "
            "ويفيد أن يكون سؤالك أكثر تحديدا، مثل: الدستور المصري، أو القانون المدني، أو قوانين الإيجار، أو "
            "العقود، أو كيفية رفع دعوى. وللحصول على نصيحة تناسب حالتك استشر محاميا مقيدا بنقابة المحامين."
        ),
    },
}

FILES_ACKNOWLEDGEMENT: Paragraphs = {
    "en": (
        "Thank you for uploading {count} file(s): {names}. I've received your documents.\n\n"
        "I can help you understand Egyptian legal documents according to the Egyptian Constitution and "
        "Egyptian laws. I recommend reviewing the documents with a qualified Egyptian attorney for specific "
        "legal advice.\n\n"
        "Could you tell me what specific legal question you have about these documents? For example:\n"
        "- Do you need help understanding a contract under Egyptian Civil Law?\n"
        "- Are you looking for clarification on Egyptian legal terms?\n"
        "- Do you need help identifying potential legal issues?\n\n"
        "Please describe what you'd like me to help you with regarding these files."
    ),
    "ar": (
        "شكرا لرفع {count} ملف: {names}. لقد استلمت مستنداتك.\n\n"
        "يمكنني مساعدتك في فهم المستندات القانونية وفق الدستور والقوانين المصرية، وأنصح بمراجعتها مع محام "
        "مصري مؤهل للحصول على نصيحة خاصة.\n\n"
        "ما السؤال القانوني المحدد الذي لديك حول هذه المستندات؟ على سبيل المثال:\n"
        "- هل تحتاج إلى مساعدة في فهم عقد وفق القانون المدني المصري؟\n"
        "- هل تبحث عن توضيح لمصطلحات قانونية؟\n"
        "- هل تريد تحديد المشكلات القانونية المحتملة؟\n\n"
        "من فضلك صف ما تريد مساعدتي فيه بخصوص هذه الملفات."
    ),
}

FILES_NOTE: Paragraphs = {
    "en": (
        "\n\nNote: User uploaded {count} file(s): {names}. I cannot read file contents, but I can answer "
        "general questions about Egyptian legal documents."
    ),
    "ar": (
        "\n\nملاحظة: قام المستخدم برفع {count} ملف: {names}. لا يمكنني قراءة محتوى الملفات، لكن يمكنني "
        "الإجابة عن الأسئلة العامة حول المستندات القانونية المصرية."
    ),
}

SYSTEM_PROMPT = """You are an expert AI legal assistant specialized in Egyptian law and the Egyptian Constitution of 2014. Your expertise includes:

EGYPTIAN LEGAL SYSTEM:
- Egyptian Constitution 2014 (supreme law of Egypt)
- Egyptian Civil Code (Law 131/1948): contracts, property, torts, obligations
- Egyptian Rent Law: Law No. 4 of 1996 (Old Rent) and Law No. 199 of 2021 (New Rent)
- Egyptian Commercial Code
- Egyptian Labor Law
- Egyptian Personal Status Law
- Egyptian court system: Constitutional Court, Court of Cassation, Courts of Appeal, Primary Courts

IMPORTANT GUIDELINES:
- Always respond in the SAME LANGUAGE as the user's question (English or Arabic)
- Focus exclusively on Egyptian law and the Egyptian legal system
- Provide accurate, detailed and comprehensive information about Egyptian legal matters
- Answer questions directly and helpfully; do not give generic responses asking for more specificity
- Reference specific Egyptian laws, articles and legal procedures when relevant
- If asked about non-Egyptian law, politely redirect to the Egyptian law context
- If the question is unclear, make reasonable assumptions and answer based on common interpretations"""
